from datetime import datetime
from sqlalchemy import Column, String, Float, ForeignKey, DateTime
from devicectl.db.session import Base

class Customer(Base):
    __tablename__ = "customers"

    customer_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    emi_per_month = Column(Float, nullable=False)  # Ежемесячный платёж
    downpayment = Column(Float, nullable=False)  # Первоначальный взнос
    device_id = Column(String, ForeignKey("devices.device_id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "customerId": self.customer_id,
            "name": self.name,
            "email": self.email,
            "emiPerMonth": self.emi_per_month,
            "downpayment": self.downpayment,
            "deviceId": self.device_id,
        }
