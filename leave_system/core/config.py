import os
import logging
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


class QuotaDefaults(BaseModel):
    """Fallback annual allotments (hours) for accounts created without explicit quotas."""
    annual_leave: Decimal = Field(default=Decimal(os.getenv("DEFAULT_ANNUAL_LEAVE", "14")))
    sick_leave: Decimal = Field(default=Decimal(os.getenv("DEFAULT_SICK_LEAVE", "30")))
    menstrual_leave: Decimal = Field(default=Decimal(os.getenv("DEFAULT_MENSTRUAL_LEAVE", "3")))
    personal_leave: Decimal = Field(default=Decimal(os.getenv("DEFAULT_PERSONAL_LEAVE", "14")))


class Config(BaseModel):
    app_name: str = "Leave System"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leave.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 8)))
    encryption_key: str = os.getenv("ENCRYPTION_KEY", "ZGV2LW9ubHkta2V5LWRvLW5vdC11c2UtaW4tcHJvZCE=")
    min_password_length: int = 4

    # Quotas
    quota_defaults: QuotaDefaults = QuotaDefaults()

    # CSV export
    export_temp_dir: str = os.getenv("EXPORT_TEMP_DIR", "./temp")
    account_export_prefix: str = "請假系統權限資料"
    leave_export_prefix: str = "請假紀錄"

    # Bootstrap admin, created on startup when the account table is empty
    bootstrap_admin: bool = os.getenv("BOOTSTRAP_ADMIN", "true").lower() == "true"
    bootstrap_admin_id: str = os.getenv("BOOTSTRAP_ADMIN_ID", "admin")
    bootstrap_admin_name: str = os.getenv("BOOTSTRAP_ADMIN_NAME", "系統管理者")
    bootstrap_admin_password: Optional[str] = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "admin")

    # Login throttling (slowapi); disabled under APP_ENV=testing
    login_rate_limit: str = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if settings.encryption_key == "ZGV2LW9ubHkta2V5LWRvLW5vdC11c2UtaW4tcHJvZCE=":
        _critical_missing.append("ENCRYPTION_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("⚠ Using insecure default SECRET_KEY; only acceptable in development.")
