from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from devicectl.db.models.device import Device, DeviceStatus

class DeviceAlreadyRegistered(ValueError):
    pass

class DeviceNotFound(LookupError):
    pass

async def get_device(db: AsyncSession, device_id: str) -> Device | None:
    result = await db.execute(select(Device).filter(Device.device_id == device_id))
    return result.scalars().first()

async def create_device(db: AsyncSession, device_id: str, token: str) -> Device:
    """
    Регистрирует новое устройство в статусе pending.
    Повторная регистрация того же device_id запрещена.
    """
    if await get_device(db, device_id):
        raise DeviceAlreadyRegistered(device_id)

    device = Device(
        device_id=device_id,
        token=token,
        status=DeviceStatus.PENDING.value,
        customer_id=None,
    )
    db.add(device)
    try:
        await db.commit()
    except IntegrityError:
        # Параллельный запрос успел вставить тот же ключ
        await db.rollback()
        raise DeviceAlreadyRegistered(device_id)
    await db.refresh(device)
    return device

async def _set_status(db: AsyncSession, device_id: str, status: DeviceStatus) -> None:
    result = await db.execute(
        update(Device)
        .where(Device.device_id == device_id)
        .values(status=status.value, updated_at=datetime.utcnow())
    )
    if result.rowcount == 0:
        await db.rollback()
        raise DeviceNotFound(device_id)
    await db.commit()

async def mark_active(db: AsyncSession, device_id: str) -> None:
    # pending -> active и locked -> active это один и тот же переход
    await _set_status(db, device_id, DeviceStatus.ACTIVE)

async def mark_locked(db: AsyncSession, device_id: str) -> None:
    await _set_status(db, device_id, DeviceStatus.LOCKED)

async def activate_with_token(db: AsyncSession, device_id: str, token: str) -> bool:
    """
    Активирует устройство, только если сохранённый токен совпадает с предъявленным.
    Сравнение и смена статуса идут одним UPDATE.
    """
    result = await db.execute(
        update(Device)
        .where(Device.device_id == device_id)
        .where(Device.token == token)
        .values(status=DeviceStatus.ACTIVE.value, updated_at=datetime.utcnow())
    )
    if result.rowcount == 0:
        await db.rollback()
        return False
    await db.commit()
    return True

async def set_customer(db: AsyncSession, device_id: str, customer_id: str) -> None:
    """Проставляет обратную ссылку на клиента. Коммит остаётся за вызывающим."""
    result = await db.execute(
        update(Device)
        .where(Device.device_id == device_id)
        .values(customer_id=customer_id, updated_at=datetime.utcnow())
    )
    if result.rowcount == 0:
        raise DeviceNotFound(device_id)
