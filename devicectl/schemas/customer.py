from typing import Any
from pydantic import BaseModel

class CustomerCreate(BaseModel):
    name: str | None = None
    email: str | None = None
    # Суммы могут прийти строкой ("100"), приводим к числу в обработчике
    emiPerMonth: Any = None
    downpayment: Any = None
    deviceId: str | None = None

class CustomerRead(BaseModel):
    customerId: str
    name: str
    email: str
    emiPerMonth: float
    downpayment: float
    deviceId: str

class CustomerAddResponse(BaseModel):
    message: str
    customer: CustomerRead

class CustomerLookupResponse(BaseModel):
    customer: CustomerRead
