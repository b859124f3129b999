import logging
import math
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from devicectl.api.errors import internal_error
from devicectl.db.repositories.customer import create_customer, get_customer
from devicectl.db.repositories.device import DeviceNotFound, get_device
from devicectl.db.session import get_db
from devicectl.schemas.customer import CustomerAddResponse, CustomerCreate, CustomerLookupResponse

logger = logging.getLogger(__name__)

router = APIRouter()

def is_missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())

def parse_amount(value) -> float | None:
    """
    Приводит сумму к числу: принимаются числа и числовые строки.
    Возвращает None для нечисловых, отрицательных и бесконечных значений.
    """
    # bool это подкласс int, но суммой не является
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    if isinstance(value, str):
        value = value.strip()
    # Огромное целое из JSON не влезает во float
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None

    if not math.isfinite(number) or number < 0:
        return None
    return number

@router.post("/add", response_model=CustomerAddResponse)
async def add_customer(data: CustomerCreate, db: AsyncSession = Depends(get_db)):
    required = (data.name, data.email, data.emiPerMonth, data.downpayment, data.deviceId)
    if any(is_missing(value) for value in required):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="All customer details are required")

    emi_per_month = parse_amount(data.emiPerMonth)
    if emi_per_month is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="emiPerMonth must be a non-negative number")
    downpayment = parse_amount(data.downpayment)
    if downpayment is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="downpayment must be a non-negative number")

    try:
        if not await get_device(db, data.deviceId):
            raise DeviceNotFound(data.deviceId)
        customer = await create_customer(
            db,
            name=data.name,
            email=data.email,
            emi_per_month=emi_per_month,
            downpayment=downpayment,
            device_id=data.deviceId,
        )
    except DeviceNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")
    except Exception:
        logger.exception("Error adding customer for device %s", data.deviceId)
        raise internal_error()

    logger.info("Customer %s attached to device %s", customer.customer_id, data.deviceId)
    return {"message": "Customer added successfully", "customer": customer.to_dict()}

@router.get("/{customer_id}", response_model=CustomerLookupResponse)
async def read_customer(customer_id: str, db: AsyncSession = Depends(get_db)):
    try:
        customer = await get_customer(db, customer_id)
    except Exception:
        logger.exception("Error fetching customer %s", customer_id)
        raise internal_error()

    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return {"customer": customer.to_dict()}
