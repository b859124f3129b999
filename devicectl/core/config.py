from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Device Control API"
    API_PREFIX: str = "/api"
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"
    # Без секрета сервис не стартует
    JWT_SECRET: str = Field(min_length=1)
    ALGORITHM: str = "HS256"
    ENROLLMENT_TOKEN_EXPIRE_DAYS: int = 30
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LIVENESS_INTERVAL_SECONDS: int = 300
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
