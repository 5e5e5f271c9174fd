"""
Leave Policy Evaluator

Pure rule evaluation for a candidate leave request. Given the draft and a
snapshot of the store (applications, the requester's balance and the user
directory) it returns every violated rule as a human-readable message.
An empty list means the request is acceptable.

Rules are never short-circuited: all applicable violations are collected,
in this fixed order:
1. required fields
2. date sanity
3. emergency shape (single sick day, today or tomorrow) and throttling
   (emergency only)
4. overlap with own pending/approved leave (non-emergency)
5. team capacity (non-emergency)
6. balance sufficiency (skipped for emergency sick leave)
7. extended sick leave needs a medical certificate
8. per-type caps (non-emergency)
"""
import math
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel

from leaveflow.core.config import LeavePolicySettings, settings
from leaveflow.schemas.leave import (
    ACTIVE_STATUSES,
    LeaveApplication,
    LeaveBalance,
    LeaveRequestDraft,
    LeaveStatus,
    LeaveType,
    PublicHoliday,
)
from leaveflow.schemas.user import User


class PolicyContext(BaseModel):
    applications: List[LeaveApplication] = []
    balance: Optional[LeaveBalance] = None
    all_users: List[User] = []


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def evaluate(
    draft: LeaveRequestDraft,
    context: PolicyContext,
    now: Optional[datetime] = None,
    policy: Optional[LeavePolicySettings] = None,
) -> List[str]:
    now = as_utc(now or utc_now())
    policy = policy or settings.leave_policy
    today = now.date()

    own = [a for a in context.applications if a.user_id == draft.user_id]
    errors: List[str] = []

    errors.extend(_required_fields(draft, policy))
    errors.extend(_date_sanity(draft, today))

    if draft.is_emergency:
        errors.extend(_emergency_shape(draft, today))
        errors.extend(_emergency_throttling(own, now, policy))

    duration = draft.duration
    if duration is None:
        return errors

    if not draft.is_emergency:
        errors.extend(_overlap(draft, own))
        errors.extend(_team_capacity(draft, context, policy))

    errors.extend(_balance(draft, context.balance, duration))
    errors.extend(_extended_sick_leave(draft, duration, policy))

    if not draft.is_emergency:
        errors.extend(_per_type_caps(draft, own, duration, policy))

    return errors


def _required_fields(draft: LeaveRequestDraft, policy: LeavePolicySettings) -> List[str]:
    errors = []
    if draft.start_date is None:
        errors.append("Start date is required")
    if draft.end_date is None:
        errors.append("End date is required")
    if not draft.reason.strip():
        errors.append("Reason is required")

    if (
        draft.leave_type == LeaveType.SICK
        and not draft.is_emergency
        and len(draft.reason) < policy.min_sick_reason_length
    ):
        errors.append("Please provide more details about your illness for sick leave requests")
    return errors


def _date_sanity(draft: LeaveRequestDraft, today: date) -> List[str]:
    errors = []
    if draft.start_date is not None and draft.start_date < today and not draft.is_emergency:
        errors.append("Start date cannot be in the past")
    if draft.start_date is not None and draft.end_date is not None and draft.end_date < draft.start_date:
        errors.append("End date cannot be before start date")
    return errors


def _emergency_shape(draft: LeaveRequestDraft, today: date) -> List[str]:
    """Emergency leave is a single sick day, today or tomorrow."""
    errors = []
    if draft.leave_type != LeaveType.SICK:
        errors.append("Emergency leaves are automatically processed as sick leaves")
    if draft.start_date is not None and draft.end_date is not None and draft.start_date != draft.end_date:
        errors.append("Emergency leaves can only be taken for a single day")
    if draft.start_date is not None and draft.start_date not in (today, today + timedelta(days=1)):
        errors.append("Emergency leaves can only be taken for today or tomorrow")
    return errors


def _emergency_throttling(
    own: List[LeaveApplication], now: datetime, policy: LeavePolicySettings
) -> List[str]:
    errors = []
    emergencies = [a for a in own if a.is_emergency]

    window_start = now - timedelta(days=policy.emergency_window_days)
    in_window = [a for a in emergencies if as_utc(a.applied_on) >= window_start]
    if len(in_window) >= policy.max_emergency_per_window:
        errors.append(
            f"You have already used the maximum allowed emergency leaves "
            f"({policy.max_emergency_per_window}) in the past {policy.emergency_window_days} days"
        )

    cooldown_start = now - timedelta(days=policy.emergency_cooldown_days)
    if any(as_utc(a.applied_on) >= cooldown_start for a in emergencies):
        errors.append(
            f"You have already taken an emergency leave in the past {policy.emergency_cooldown_days} days. "
            "Frequent emergency leaves require HR review."
        )

    yesterday = now.date() - timedelta(days=1)
    if any(a.start_date == yesterday for a in emergencies):
        errors.append(
            "You cannot take emergency leaves on consecutive days. "
            "Please apply for a regular sick leave instead."
        )
    return errors


def ranges_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    return (
        (other_start <= start <= other_end)
        or (other_start <= end <= other_end)
        or (start <= other_start and end >= other_end)
    )


def _overlap(draft: LeaveRequestDraft, own: List[LeaveApplication]) -> List[str]:
    clash = any(
        a.status in ACTIVE_STATUSES
        and ranges_overlap(draft.start_date, draft.end_date, a.start_date, a.end_date)
        for a in own
    )
    if clash:
        return ["You already have approved or pending leave during this period"]
    return []


def _team_capacity(
    draft: LeaveRequestDraft, context: PolicyContext, policy: LeavePolicySettings
) -> List[str]:
    max_absent = math.floor(len(context.all_users) * policy.team_capacity_ratio)
    approved = [a for a in context.applications if a.status == LeaveStatus.APPROVED]

    day = draft.start_date
    while day <= draft.end_date:
        on_leave = {a.user_id for a in approved if a.covers(day)}
        # +1 for the request being evaluated
        if len(on_leave) + 1 > max_absent:
            return [f"Too many team members are on leave on {day.isoformat()}. Please choose different dates."]
        day += timedelta(days=1)
    return []


def _balance(draft: LeaveRequestDraft, balance: Optional[LeaveBalance], duration: int) -> List[str]:
    if balance is None:
        return []
    if draft.is_emergency and draft.leave_type == LeaveType.SICK:
        return []

    available = balance.remaining(draft.leave_type)
    if duration > available:
        return [
            f"Not enough {draft.leave_type.value} leave balance. You have {available} days available."
        ]
    return []


def _extended_sick_leave(
    draft: LeaveRequestDraft, duration: int, policy: LeavePolicySettings
) -> List[str]:
    if (
        draft.leave_type == LeaveType.SICK
        and duration > policy.sick_days_without_certificate
        and "medical certificate" not in draft.reason.lower()
    ):
        return [
            f"Sick leaves longer than {policy.sick_days_without_certificate} days require a "
            "medical certificate (please mention this in your reason)"
        ]
    return []


def _per_type_caps(
    draft: LeaveRequestDraft,
    own: List[LeaveApplication],
    duration: int,
    policy: LeavePolicySettings,
) -> List[str]:
    errors = []
    start, end = draft.start_date, draft.end_date

    if draft.leave_type == LeaveType.CASUAL and duration > policy.max_casual_days:
        errors.append("Only 1 casual leave per week is allowed")
        errors.append("Casual leaves cannot exceed 1 day at a time")

    if draft.leave_type == LeaveType.MISCELLANEOUS and duration > policy.max_miscellaneous_days:
        errors.append("Miscellaneous leaves cannot exceed 1 day at a time")

    if draft.leave_type == LeaveType.CASUAL:
        day_before = start - timedelta(days=1)
        day_after = end + timedelta(days=1)
        adjacent = any(
            a.leave_type == LeaveType.CASUAL
            and a.status in ACTIVE_STATUSES
            and (a.end_date == day_before or a.start_date == day_after)
            for a in own
        )
        if adjacent:
            errors.append("Casual leaves cannot be taken on consecutive days, even across separate requests")

    if draft.leave_type == LeaveType.PAID:
        if (start.year, start.month) != (end.year, end.month):
            errors.append("Paid leaves cannot span across different months")
        else:
            already = sum(
                a.duration
                for a in own
                if a.leave_type == LeaveType.PAID
                and a.status in ACTIVE_STATUSES
                and (a.start_date.year, a.start_date.month) == (start.year, start.month)
            )
            if already + duration > policy.max_paid_days_per_month:
                errors.append(
                    f"You can only take {policy.max_paid_days_per_month} paid leaves per month. "
                    f"You have already used or applied for {already} days this month."
                )
    return errors


def find_public_holidays(
    start: date, end: date, policy: Optional[LeavePolicySettings] = None
) -> List[PublicHoliday]:
    """Configured public holidays inside [start, end]. Informational only, never a violation."""
    policy = policy or settings.leave_policy
    holidays = []
    day = start
    while day <= end:
        name = policy.public_holidays.get(day.isoformat())
        if name:
            holidays.append(PublicHoliday(date=day, name=name))
        day += timedelta(days=1)
    return holidays
