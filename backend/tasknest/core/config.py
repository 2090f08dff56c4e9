from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "Tasknest API"
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # DB
    DATABASE_URL: str = "sqlite:///./data/tasknest.db"

    # Recurring tasks: cascade/duplicate guard window
    RECURRENCE_GUARD_WINDOW_SEC: int = 120

    # Bulk SMS gateway
    SMS_API_KEY: str = ""
    SMS_SENDER_ID: str = ""
    SMS_API_URL: str = "http://bulksmsbd.net/api/smsapi"
    SMS_BALANCE_URL: str = "http://bulksmsbd.net/api/getBalanceApi"
    SMS_TIMEOUT_SEC: int = 15

    class Config:
        env_file = ".env"

settings = Settings()
