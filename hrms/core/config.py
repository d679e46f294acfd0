"""
Settings, read once from the environment (and a local ``.env``) at import time.
"""
import logging
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

logger = logging.getLogger(__name__)

DEV_SECRET_KEY = "dev-only-insecure-key-DO-NOT-USE-IN-PROD"
DEV_ENCRYPTION_KEY = "ZGV2LW9ubHkta2V5LWRvLW5vdC11c2UtaW4tcHJvZCE="
RELAXED_ENVIRONMENTS = ("development", "testing")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class AttendancePolicy(BaseModel):
    late_grace_minutes: int = Field(default=int(os.getenv("LATE_GRACE_MINUTES", "10")))
    # Late check-ins already recorded this month before a new late one is escalated to ABSENT
    late_absence_threshold: int = Field(default=int(os.getenv("LATE_ABSENCE_THRESHOLD", "3")))
    geo_fence_radius_meters: float = Field(default=float(os.getenv("GEO_FENCE_RADIUS_METERS", "200")))
    # date.weekday() values: Monday=0 ... Sunday=6
    weekend_days: List[int] = Field(
        default_factory=lambda: [int(d) for d in _env_list("WEEKEND_DAYS", "5,6")]
    )
    # IANA zone for shift times when a location sets none; empty means the host zone
    timezone: str = Field(default=os.getenv("ATTENDANCE_TIMEZONE", ""))


class LeavePolicySettings(BaseModel):
    allow_negative_balance: bool = Field(default=_env_bool("ALLOW_NEGATIVE_LEAVE_BALANCE"))
    wfh_max_days: int = Field(default=int(os.getenv("WFH_MAX_DAYS", "3")))


class HolidaySettings(BaseModel):
    default_country_code: str = Field(default=os.getenv("DEFAULT_COUNTRY_CODE", "PK"))


class Config(BaseModel):
    app_name: str = "HRMS Time & Pay Engine"
    version: str = "1.0.0"
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_prefix: str = "/api"
    request_id_header: str = "X-Request-ID"

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hrms.db")

    # Bearer tokens are issued elsewhere; we only verify them
    secret_key: str = os.getenv("SECRET_KEY", DEV_SECRET_KEY)
    token_algorithm: str = os.getenv("TOKEN_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    # Fernet key for bank account numbers at rest
    encryption_key: str = os.getenv("ENCRYPTION_KEY", DEV_ENCRYPTION_KEY)

    cors_origins: List[str] = Field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173",
        )
    )

    # Roles allowed to preview and finalize payroll
    payroll_roles: List[str] = ["PAYROLL", "HR", "ADMIN", "SUPER_ADMIN"]

    attendance: AttendancePolicy = AttendancePolicy()
    leave: LeavePolicySettings = LeavePolicySettings()
    holidays: HolidaySettings = HolidaySettings()


def check_secrets(config: Config) -> None:
    """Refuse to start outside development with the built-in keys."""
    insecure = []
    if config.secret_key == DEV_SECRET_KEY:
        insecure.append("SECRET_KEY")
    if config.encryption_key == DEV_ENCRYPTION_KEY:
        insecure.append("ENCRYPTION_KEY")
    if not insecure:
        return
    if config.environment in RELAXED_ENVIRONMENTS:
        logger.warning(f"Using development defaults for {', '.join(insecure)}")
        return
    raise RuntimeError(
        f"{', '.join(insecure)} must be set when APP_ENV={config.environment}"
    )


settings = Config()
check_secrets(settings)
