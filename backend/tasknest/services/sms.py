import json
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..core.config import Settings
from ..core.errors import SmsGatewayError

logger = logging.getLogger(__name__)

COUNTRY_PREFIX = "880"
SUCCESS_CODE = "202"

ERROR_MESSAGES = {
    "1001": "Invalid phone number",
    "1002": "Sender ID not correct or disabled",
    "1003": "Required fields missing",
    "1005": "Internal SMS gateway error - Sender ID may not be configured",
    "1006": "Balance validity not available",
    "1007": "Insufficient SMS balance",
    "1011": "User ID not found",
    "1031": "Account not verified with SMS provider",
    "1032": "IP not whitelisted",
}


def format_phone_number(raw: str) -> str:
    number = raw.replace("+", "").strip()
    if number.startswith(COUNTRY_PREFIX):
        return number
    if number.startswith("0"):
        return COUNTRY_PREFIX + number[1:]
    if number.startswith("1"):
        return COUNTRY_PREFIX + number
    return number


@dataclass
class SmsResult:
    success: bool
    message: str
    code: Optional[str] = None
    detail: Optional[str] = None


def parse_send_response(body: str) -> SmsResult:
    """The gateway answers either with JSON ({"response_code": ...}) or a bare status code."""
    code = None
    data = None
    try:
        data = json.loads(body)
    except ValueError:
        code = body.strip()
    else:
        if isinstance(data, dict):
            raw_code = data.get("response_code")
            code = str(raw_code) if raw_code is not None else None
            if code == SUCCESS_CODE or data.get("success_message"):
                return SmsResult(True, "SMS sent successfully", SUCCESS_CODE)
        else:
            code = str(data)

    if code == SUCCESS_CODE or SUCCESS_CODE in body:
        return SmsResult(True, "SMS sent successfully", SUCCESS_CODE)

    error = ERROR_MESSAGES.get(code or "", "SMS gateway error")
    detail = data.get("error_message") if isinstance(data, dict) else None
    return SmsResult(False, f"{error} (Code: {code})", code, detail or error)


class SmsGateway:
    def __init__(self, api_url: str, balance_url: str, api_key: str, sender_id: str, timeout: int = 15):
        self.api_url = api_url
        self.balance_url = balance_url
        self.api_key = api_key
        self.sender_id = sender_id
        self.timeout = timeout

    @classmethod
    def from_settings(cls, s: Settings) -> "SmsGateway":
        return cls(
            api_url=s.SMS_API_URL,
            balance_url=s.SMS_BALANCE_URL,
            api_key=s.SMS_API_KEY,
            sender_id=s.SMS_SENDER_ID,
            timeout=s.SMS_TIMEOUT_SEC,
        )

    def send(self, phone_number: str, message: str) -> SmsResult:
        number = format_phone_number(phone_number)
        params = {
            "api_key": self.api_key,
            "type": "text",
            "number": number,
            "senderid": self.sender_id,
            "message": message,
        }
        logger.info("Sending SMS to=%s length=%s", number, len(message))
        try:
            r = requests.get(self.api_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.exception("SMS send failed")
            raise SmsGatewayError(str(e)) from e
        result = parse_send_response(r.text)
        if not result.success:
            logger.warning("SMS gateway rejected message code=%s", result.code)
        return result

    def balance(self) -> str:
        try:
            r = requests.get(self.balance_url, params={"api_key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.exception("SMS balance check failed")
            raise SmsGatewayError(str(e)) from e
        return r.text
