from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...core.errors import SmsGatewayError
from ...schemas.sms import BalanceOut, SmsIn, SmsOut

router = APIRouter(prefix="/sms")


@router.post("/send", response_model=SmsOut)
def send_sms(body: SmsIn, request: Request):
    if not body.phoneNumber.strip() or not body.message.strip():
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Phone number and message are required"},
        )
    try:
        result = request.app.state.sms.send(body.phoneNumber, body.message)
    except SmsGatewayError as e:
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
    return SmsOut(success=result.success, message=result.message, code=result.code, detail=result.detail)


@router.get("/balance", response_model=BalanceOut)
def balance(request: Request):
    try:
        value = request.app.state.sms.balance()
    except SmsGatewayError as e:
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
    return BalanceOut(balance=value)
