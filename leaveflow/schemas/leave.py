from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional
import enum


class LeaveType(str, enum.Enum):
    PAID = "paid"
    SICK = "sick"
    CASUAL = "casual"
    MISCELLANEOUS = "miscellaneous"


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RECALLED = "recalled"


# Statuses that hold a claim on the calendar
ACTIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days covered by [start, end], both ends included."""
    return abs((end - start).days) + 1


class LeaveBalance(BaseModel):
    user_id: str
    paid: int
    sick: int
    casual: int
    miscellaneous: int
    max_paid: int
    max_sick: int
    max_casual: int
    max_miscellaneous: int

    @classmethod
    def fresh(cls, user_id: str, allowance: int) -> "LeaveBalance":
        return cls(
            user_id=user_id,
            paid=allowance, sick=allowance, casual=allowance, miscellaneous=allowance,
            max_paid=allowance, max_sick=allowance, max_casual=allowance, max_miscellaneous=allowance,
        )

    def remaining(self, leave_type: LeaveType) -> int:
        return getattr(self, LeaveType(leave_type).value)

    def maximum(self, leave_type: LeaveType) -> int:
        return getattr(self, f"max_{LeaveType(leave_type).value}")


class LeaveApplication(BaseModel):
    id: str
    user_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.PENDING
    reason: str
    applied_on: datetime
    is_emergency: bool = False
    rejection_reason: Optional[str] = None
    recalled_on: Optional[datetime] = None
    recall_reason: Optional[str] = None

    @property
    def duration(self) -> int:
        return inclusive_days(self.start_date, self.end_date)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class LeaveRequestDraft(BaseModel):
    """Candidate leave request as collected from the apply form or calendar selection."""

    user_id: str
    leave_type: LeaveType = LeaveType.PAID
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: str = ""
    is_emergency: bool = False

    @property
    def duration(self) -> Optional[int]:
        if self.start_date is None or self.end_date is None:
            return None
        return inclusive_days(self.start_date, self.end_date)


# --- API payloads ---

class TransitionRequest(BaseModel):
    reason: Optional[str] = None


class PublicHoliday(BaseModel):
    date: date
    name: str


class ValidationResult(BaseModel):
    valid: bool
    violations: List[str] = []
    holidays: List[PublicHoliday] = []


class EmergencyUsage(BaseModel):
    last_30_days: int = 0
    last_year: int = 0
    most_recent: Optional[date] = None


class LeaveStats(BaseModel):
    total_requested: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0
    emergency: int = 0


class LeaveUsage(BaseModel):
    """Approved days taken of one leave type against its balance maximum."""
    leave_type: LeaveType
    used_days: int = 0
    max_days: int = 0
    utilization: int = 0  # percent of max_days


class CalendarDay(BaseModel):
    date: date
    is_today: bool = False
    has_leave: bool = False
    leave_type: Optional[LeaveType] = None
    user_ids: List[str] = Field(default_factory=list)


class ManagerQueue(BaseModel):
    pending: List[LeaveApplication] = []
    recently_processed: List[LeaveApplication] = []
    recently_recalled: List[LeaveApplication] = []


class Dashboard(BaseModel):
    balance: LeaveBalance
    upcoming: List[LeaveApplication] = []
    recent: List[LeaveApplication] = []
    emergency_usage: EmergencyUsage
    stats: LeaveStats
    usage: List[LeaveUsage] = []
    notices: List[str] = []
