import os
import logging
from pydantic import BaseModel, Field
from typing import Dict, List
from dotenv import load_dotenv

load_dotenv()

# Sample public holidays, surfaced as notices on leave requests
DEFAULT_PUBLIC_HOLIDAYS: Dict[str, str] = {
    "2025-01-01": "New Year's Day",
    "2025-01-20": "Martin Luther King Jr. Day",
    "2025-02-17": "Presidents' Day",
    "2025-05-26": "Memorial Day",
    "2025-07-04": "Independence Day",
    "2025-09-01": "Labor Day",
    "2025-10-13": "Columbus Day",
    "2025-11-11": "Veterans Day",
    "2025-11-27": "Thanksgiving Day",
    "2025-12-25": "Christmas Day",
}

class LeavePolicySettings(BaseModel):
    allowance_per_type: int = Field(default=int(os.getenv("LEAVE_ALLOWANCE", "12")))
    team_capacity_ratio: float = Field(default=float(os.getenv("TEAM_CAPACITY_RATIO", "0.5")))

    # Emergency throttling
    emergency_window_days: int = 30
    max_emergency_per_window: int = Field(default=int(os.getenv("MAX_EMERGENCY_PER_30_DAYS", "3")))
    emergency_cooldown_days: int = 7
    emergency_choice_hour: int = 12  # from this hour the employee may pick tomorrow instead
    emergency_cutoff_hour: int = 18  # after this hour emergency leave defaults to tomorrow

    # Per-type caps
    max_paid_days_per_month: int = Field(default=int(os.getenv("MAX_PAID_DAYS_PER_MONTH", "5")))
    max_casual_days: int = 1
    max_miscellaneous_days: int = 1
    sick_days_without_certificate: int = 3
    min_sick_reason_length: int = 10

    # Query views
    upcoming_window_days: int = 30
    recent_applications_limit: int = 5
    low_paid_balance_threshold: int = 2

    public_holidays: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PUBLIC_HOLIDAYS))

class Config(BaseModel):
    app_name: str = "Leave Management Service"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leaveflow.db")

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000,"
                "http://localhost:5173,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Bootstrap
    seed_demo_users: bool = os.getenv("SEED_DEMO_USERS", "true").lower() == "true"

    leave_policy: LeavePolicySettings = LeavePolicySettings()

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "development" and settings.database_url.startswith("sqlite"):
    _logger.info(f"Using local SQLite store at {settings.database_url}")
