from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from devicectl.core.config import settings

class InvalidEnrollmentToken(Exception):
    """Подпись не сходится, токен истёк или повреждён."""

def create_enrollment_token(device_id: str, issued_at: datetime | None = None) -> str:
    """
    Выпускает подписанный токен регистрации для устройства.
    Срок жизни ENROLLMENT_TOKEN_EXPIRE_DAYS (по умолчанию 30 дней).
    """
    issued_at = issued_at or datetime.now(timezone.utc)
    expire = issued_at + timedelta(days=settings.ENROLLMENT_TOKEN_EXPIRE_DAYS)
    to_encode = {"deviceId": device_id, "iat": issued_at, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)

def decode_enrollment_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise InvalidEnrollmentToken(str(e)) from e
    if not payload.get("deviceId"):
        raise InvalidEnrollmentToken("deviceId claim is missing")
    return payload
