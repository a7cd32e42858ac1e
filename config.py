import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Registry")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Notification settings
    # Supported backends: console | log | memory | webhook
    notification_backend: str = os.getenv("NOTIFICATION_BACKEND", "console").lower()
    notification_webhook_url: Optional[str] = os.getenv("NOTIFICATION_WEBHOOK_URL")
    notification_timeout: float = float(os.getenv("NOTIFICATION_TIMEOUT", "10"))

    # Loan settings
    loan_days: int = int(os.getenv("LOAN_DAYS", "14"))


settings = Settings()
