import logging
import uvicorn
from fastapi import FastAPI
from fastapi_utils.tasks import repeat_every
from devicectl.core.config import settings
from devicectl.api.errors import register_exception_handlers
from devicectl.api.v1.endpoints.customer import router as customer_router
from devicectl.api.v1.endpoints.device import router as device_router
from devicectl.db.session import engine, Base
from devicectl.tasks.liveness import log_liveness

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)
api_prefix = settings.API_PREFIX

register_exception_handlers(app)

# Register routers
app.include_router(device_router, prefix=f"{api_prefix}/devices", tags=["devices"])
app.include_router(customer_router, prefix=f"{api_prefix}/customers", tags=["customers"])

@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Startup event completed. Database tables created.")

@app.on_event("startup")
@repeat_every(seconds=settings.LIVENESS_INTERVAL_SECONDS)
async def schedule_liveness():
    await log_liveness()

@app.on_event("shutdown")
async def shutdown():
    # Для in-memory базы это заодно сбрасывает всё состояние
    await engine.dispose()
    logger.info("Shutdown event completed. Database connections closed.")

if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
