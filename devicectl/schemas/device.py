from pydantic import BaseModel

# Поля запросов необязательные: отсутствие проверяется в обработчиках,
# чтобы вернуть 400 с понятным сообщением
class DeviceIdRequest(BaseModel):
    deviceId: str | None = None

class EnrollRequest(BaseModel):
    deviceId: str | None = None
    token: str | None = None

class QrCodeResponse(BaseModel):
    qrCodeUrl: str
    deviceId: str

class DeviceStatusResponse(BaseModel):
    status: str

class MessageResponse(BaseModel):
    message: str
