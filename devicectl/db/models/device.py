import enum
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from devicectl.db.session import Base

class DeviceStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    LOCKED = "locked"

class Device(Base):
    __tablename__ = "devices"

    device_id = Column(String, primary_key=True, index=True)
    token = Column(String, nullable=False)  # Последний выданный токен регистрации
    status = Column(String, nullable=False, default=DeviceStatus.PENDING.value)  # pending, active, locked
    customer_id = Column(String, nullable=True)  # Обратная ссылка на клиента
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
