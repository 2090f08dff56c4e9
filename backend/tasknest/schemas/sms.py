from typing import Optional
from pydantic import BaseModel, Field

class SmsIn(BaseModel):
    phoneNumber: str = ""
    message: str = ""

class SmsOut(BaseModel):
    success: bool
    message: str
    code: Optional[str] = None
    detail: Optional[str] = None

class BalanceOut(BaseModel):
    success: bool = True
    balance: str

class HealthOut(BaseModel):
    status: str = "OK"
    message: str = "Server is running"
    services: dict[str, str] = Field(default_factory=lambda: {"sms": "Ready"})
