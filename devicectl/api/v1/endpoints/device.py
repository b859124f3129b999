import json
import logging
import secrets
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from devicectl.api.errors import internal_error
from devicectl.core.qr import render_qr_data_url
from devicectl.core.security import InvalidEnrollmentToken, create_enrollment_token, decode_enrollment_token
from devicectl.db.repositories.device import (
    DeviceAlreadyRegistered,
    DeviceNotFound,
    activate_with_token,
    create_device,
    get_device,
    mark_active,
    mark_locked,
)
from devicectl.db.session import get_db
from devicectl.schemas.device import (
    DeviceIdRequest,
    DeviceStatusResponse,
    EnrollRequest,
    MessageResponse,
    QrCodeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

def tokens_match(stored: str, presented: str) -> bool:
    return secrets.compare_digest(stored.encode(), presented.encode())

@router.post("/generate-qr", response_model=QrCodeResponse)
async def generate_qr(data: DeviceIdRequest, db: AsyncSession = Depends(get_db)):
    """
    Выпускает токен регистрации, кодирует {deviceId, token} в QR
    и заводит устройство в статусе pending.
    """
    device_id = data.deviceId
    if not device_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a device ID")

    try:
        if await get_device(db, device_id):
            raise DeviceAlreadyRegistered(device_id)

        token = create_enrollment_token(device_id)
        qr_data = json.dumps({"deviceId": device_id, "token": token}, separators=(",", ":"), ensure_ascii=False)
        # Рендер синхронный, уводим его из event loop
        qr_code_url = await run_in_threadpool(render_qr_data_url, qr_data)
        await create_device(db, device_id, token)
    except DeviceAlreadyRegistered:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device already registered")
    except Exception:
        logger.exception("Error generating QR code for device %s", device_id)
        raise internal_error()

    logger.info("Device %s registered, waiting for enrollment", device_id)
    return {"qrCodeUrl": qr_code_url, "deviceId": device_id}

@router.post("/enroll", response_model=MessageResponse)
async def enroll_device(data: EnrollRequest, db: AsyncSession = Depends(get_db)):
    """
    Устройство предъявляет deviceId и токен из QR.
    Нужны обе проверки: совпадение с сохранённым токеном и валидная подпись/срок.
    """
    device_id, token = data.deviceId, data.token
    if not device_id or not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device ID and token are required")

    try:
        device = await get_device(db, device_id)
        if not device or not tokens_match(device.token, token):
            logger.info("Enrollment rejected for device %s: unknown device or token mismatch", device_id)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid device or token")

        try:
            claims = decode_enrollment_token(token)
        except InvalidEnrollmentToken as e:
            logger.info("Enrollment rejected for device %s: %s", device_id, e)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is invalid or expired")
        if claims["deviceId"] != device_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is invalid or expired")

        # Токен могли заменить между чтением и записью
        if not await activate_with_token(db, device_id, token):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid device or token")
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error enrolling device %s", device_id)
        raise internal_error()

    logger.info("Device %s enrolled", device_id)
    return {"message": "Device enrolled successfully"}

@router.post("/lock", response_model=MessageResponse)
async def lock_device(data: DeviceIdRequest, db: AsyncSession = Depends(get_db)):
    if not data.deviceId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device ID is required")

    try:
        await mark_locked(db, data.deviceId)
    except DeviceNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")
    except Exception:
        logger.exception("Error locking device %s", data.deviceId)
        raise internal_error()

    logger.info("Device %s locked", data.deviceId)
    return {"message": "Device locked successfully"}

@router.post("/unlock", response_model=MessageResponse)
async def unlock_device(data: DeviceIdRequest, db: AsyncSession = Depends(get_db)):
    if not data.deviceId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Device ID is required")

    try:
        await mark_active(db, data.deviceId)
    except DeviceNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")
    except Exception:
        logger.exception("Error unlocking device %s", data.deviceId)
        raise internal_error()

    logger.info("Device %s unlocked", data.deviceId)
    return {"message": "Device unlocked successfully"}

@router.get("/{device_id}", response_model=DeviceStatusResponse)
async def get_device_status(device_id: str, db: AsyncSession = Depends(get_db)):
    try:
        device = await get_device(db, device_id)
    except Exception:
        logger.exception("Error fetching status of device %s", device_id)
        raise internal_error()

    if not device:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")
    return {"status": device.status}
