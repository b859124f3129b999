import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from devicectl.db.models.customer import Customer
from devicectl.db.repositories.device import DeviceNotFound, set_customer

def generate_customer_id() -> str:
    return f"customer-{uuid.uuid4().hex}"

async def get_customer(db: AsyncSession, customer_id: str) -> Customer | None:
    result = await db.execute(select(Customer).filter(Customer.customer_id == customer_id))
    return result.scalars().first()

async def create_customer(
    db: AsyncSession,
    name: str,
    email: str,
    emi_per_month: float,
    downpayment: float,
    device_id: str,
) -> Customer:
    """
    Создаёт клиента и привязывает его к устройству в одной транзакции.
    Существование устройства проверяет вызывающий код.
    """
    customer_id = generate_customer_id()
    while await get_customer(db, customer_id):
        customer_id = generate_customer_id()

    customer = Customer(
        customer_id=customer_id,
        name=name,
        email=email,
        emi_per_month=emi_per_month,
        downpayment=downpayment,
        device_id=device_id,
    )
    db.add(customer)
    try:
        await set_customer(db, device_id, customer_id)
    except DeviceNotFound:
        await db.rollback()
        raise
    await db.commit()
    await db.refresh(customer)
    return customer
