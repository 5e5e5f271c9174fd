"""
Read-only projections over applications and balances for dashboards,
the team calendar and the manager queue.
"""
import calendar
import math
from datetime import date, datetime, timedelta
from typing import List, Optional

from leaveflow.core.config import settings
from leaveflow.core.exceptions import NotFound
from leaveflow.schemas.leave import (
    CalendarDay,
    Dashboard,
    EmergencyUsage,
    LeaveApplication,
    LeaveBalance,
    LeaveStats,
    LeaveStatus,
    LeaveType,
    LeaveUsage,
    ManagerQueue,
)
from leaveflow.schemas.user import User
from leaveflow.services.base import BaseService
from leaveflow.services.directory import resolve_manager
from leaveflow.services.ledger import BalanceLedger
from leaveflow.services.policy import as_utc


def upcoming_leaves(applications: List[LeaveApplication], today: date, window_days: int = 30) -> List[LeaveApplication]:
    horizon = today + timedelta(days=window_days)
    upcoming = [
        a for a in applications
        if a.status == LeaveStatus.APPROVED and today <= a.start_date <= horizon
    ]
    return sorted(upcoming, key=lambda a: a.start_date)


def recent_applications(applications: List[LeaveApplication], limit: int = 5) -> List[LeaveApplication]:
    return sorted(applications, key=lambda a: as_utc(a.applied_on), reverse=True)[:limit]


def team_calendar(
    applications: List[LeaveApplication],
    year: int,
    month: int,
    today: Optional[date] = None,
    user_id: Optional[str] = None,
) -> List[CalendarDay]:
    """One entry per day of the month; a day has leave when an approved application covers it."""
    approved = [
        a for a in applications
        if a.status == LeaveStatus.APPROVED and (user_id is None or a.user_id == user_id)
    ]
    days = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_number)
        covering = [a for a in approved if a.covers(day)]
        days.append(
            CalendarDay(
                date=day,
                is_today=day == today,
                has_leave=bool(covering),
                leave_type=covering[0].leave_type if covering else None,
                user_ids=sorted({a.user_id for a in covering}),
            )
        )
    return days


def _one_year_before(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        # 29 February
        return moment.replace(year=moment.year - 1, day=28)


def emergency_usage(applications: List[LeaveApplication], now: datetime, window_days: int = 30) -> EmergencyUsage:
    now = as_utc(now)
    emergencies = [a for a in applications if a.is_emergency]
    window_start = now - timedelta(days=window_days)
    year_start = _one_year_before(now)

    last_year = [a for a in emergencies if as_utc(a.applied_on) >= year_start]
    most_recent = None
    if last_year:
        most_recent = max(last_year, key=lambda a: as_utc(a.applied_on)).start_date

    return EmergencyUsage(
        last_30_days=sum(1 for a in emergencies if as_utc(a.applied_on) >= window_start),
        last_year=len(last_year),
        most_recent=most_recent,
    )


def leave_stats(applications: List[LeaveApplication]) -> LeaveStats:
    return LeaveStats(
        total_requested=len(applications),
        approved=sum(1 for a in applications if a.status == LeaveStatus.APPROVED),
        rejected=sum(1 for a in applications if a.status == LeaveStatus.REJECTED),
        pending=sum(1 for a in applications if a.status == LeaveStatus.PENDING),
        emergency=sum(1 for a in applications if a.is_emergency),
    )


def usage_by_type(applications: List[LeaveApplication], balance: Optional[LeaveBalance]) -> List[LeaveUsage]:
    """Approved days per leave type and the share of the balance maximum they use."""
    usage = []
    for leave_type in LeaveType:
        used = sum(
            a.duration for a in applications
            if a.status == LeaveStatus.APPROVED and a.leave_type == leave_type
        )
        maximum = balance.maximum(leave_type) if balance is not None else 0
        utilization = math.floor(used * 100 / maximum + 0.5) if maximum else 0
        usage.append(LeaveUsage(leave_type=leave_type, used_days=used, max_days=maximum, utilization=utilization))
    return usage


def manager_queue(applications: List[LeaveApplication], limit: int = 5) -> ManagerQueue:
    pending = [a for a in applications if a.status == LeaveStatus.PENDING]
    # Emergency first, then newest first
    pending.sort(key=lambda a: as_utc(a.applied_on), reverse=True)
    pending.sort(key=lambda a: not a.is_emergency)

    processed = [a for a in applications if a.status in (LeaveStatus.APPROVED, LeaveStatus.REJECTED)]
    recalled = [a for a in applications if a.status == LeaveStatus.RECALLED]
    return ManagerQueue(
        pending=pending,
        recently_processed=recent_applications(processed, limit),
        recently_recalled=sorted(
            recalled, key=lambda a: as_utc(a.recalled_on or a.applied_on), reverse=True
        )[:limit],
    )


def dashboard_notices(
    applications: List[LeaveApplication],
    balance: Optional[LeaveBalance],
    manager: Optional[User],
    now: datetime,
    low_paid_threshold: int = 2,
) -> List[str]:
    notices = []
    if any(a.status == LeaveStatus.PENDING for a in applications):
        notices.append("You have pending leave applications awaiting approval.")

    if balance is not None and balance.remaining(LeaveType.PAID) <= low_paid_threshold:
        notices.append("You have only a few paid leaves remaining. Plan your leaves wisely.")

    if manager is not None:
        notices.append(f"Your leave requests will be reviewed by {manager.name}.")
    else:
        notices.append("You don't have a manager assigned yet. Contact admin for help.")

    week_ago = as_utc(now) - timedelta(days=7)
    recently_recalled = [
        a for a in applications
        if a.status == LeaveStatus.RECALLED and a.recalled_on and as_utc(a.recalled_on) > week_ago
    ]
    if recently_recalled:
        notices.append(
            f"You have {len(recently_recalled)} recently recalled leave(s). Your leave balance has been updated."
        )
    return notices


class LeaveQueryService(BaseService):

    def __init__(self, store, ledger: Optional[BalanceLedger] = None, clock=None):
        super().__init__(store, clock)
        self.ledger = ledger or BalanceLedger(store)
        self.policy = settings.leave_policy

    def _require_user(self, user_id: str) -> User:
        user = next((u for u in self.store.load_users() if u.id == user_id), None)
        if user is None:
            raise NotFound("User", user_id)
        return user

    def list_applications(
        self, user_id: Optional[str] = None, status: Optional[LeaveStatus] = None
    ) -> List[LeaveApplication]:
        results = [
            a for a in self.store.load_applications()
            if (user_id is None or a.user_id == user_id) and (status is None or a.status == status)
        ]
        return sorted(results, key=lambda a: as_utc(a.applied_on), reverse=True)

    def get_application(self, application_id: str) -> LeaveApplication:
        for application in self.store.load_applications():
            if application.id == application_id:
                return application
        raise NotFound("Leave application", application_id)

    def balance_for(self, user_id: str) -> LeaveBalance:
        """Balance for a known user, created with the default allowance on first access."""
        with self.transaction():
            self._require_user(user_id)
            balance = self.ledger.get_or_create(user_id)
        return balance

    def emergency_usage_for(self, user_id: str) -> EmergencyUsage:
        self._require_user(user_id)
        own = [a for a in self.store.load_applications() if a.user_id == user_id]
        return emergency_usage(own, self.clock(), self.policy.emergency_window_days)

    def calendar(self, year: int, month: int, user_id: Optional[str] = None) -> List[CalendarDay]:
        return team_calendar(
            self.store.load_applications(), year, month, today=self.clock().date(), user_id=user_id
        )

    def manager_queue(self, manager_id: Optional[str] = None) -> ManagerQueue:
        applications = self.store.load_applications()
        if manager_id is not None:
            self._require_user(manager_id)
            team = set()
            for assignment in self.store.load_manager_assignments():
                if assignment.manager_id == manager_id:
                    team.update(assignment.employee_ids)
            applications = [a for a in applications if a.user_id in team]
        return manager_queue(applications, self.policy.recent_applications_limit)

    def dashboard(self, user_id: str) -> Dashboard:
        balance = self.balance_for(user_id)
        now = self.clock()
        own = [a for a in self.store.load_applications() if a.user_id == user_id]
        manager = resolve_manager(self.store.load_manager_assignments(), self.store.load_users(), user_id)

        return Dashboard(
            balance=balance,
            upcoming=upcoming_leaves(own, now.date(), self.policy.upcoming_window_days),
            recent=recent_applications(own, self.policy.recent_applications_limit),
            emergency_usage=emergency_usage(own, now, self.policy.emergency_window_days),
            stats=leave_stats(own),
            usage=usage_by_type(own, balance),
            notices=dashboard_notices(own, balance, manager, now, self.policy.low_paid_balance_threshold),
        )
