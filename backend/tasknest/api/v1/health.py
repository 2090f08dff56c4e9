from fastapi import APIRouter
from ...schemas.sms import HealthOut

router = APIRouter()

@router.get("/health", response_model=HealthOut)
def health():
    return HealthOut()
