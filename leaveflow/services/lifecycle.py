"""
Leave Lifecycle Service

Applies validated requests and guards every status transition:

    pending  --approve-->  approved  --recall-->  recalled   (balance restored)
    pending  --reject--->  rejected  --reapply--> new draft  (original untouched)
    pending  --cancel--->  rejected
    pending  --recall--->  recalled
    emergency submissions are created approved and deducted immediately

A transition attempted from the wrong status raises InvalidTransition
instead of silently doing nothing. Each operation is one unit of work.
"""
import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from leaveflow.core.config import settings
from leaveflow.core.exceptions import InvalidTransition, NotFound, ValidationFailure
from leaveflow.schemas.leave import (
    LeaveApplication,
    LeaveBalance,
    LeaveRequestDraft,
    LeaveStatus,
    LeaveType,
    ValidationResult,
)
from leaveflow.services.base import BaseService
from leaveflow.services.ledger import BalanceLedger
from leaveflow.services.policy import PolicyContext, evaluate, find_public_holidays

REAPPLY_PREFIX = "Reapplying for previously rejected leave. "
EMERGENCY_REASON = "Emergency leave - details to be provided later"
DEFAULT_CANCEL_REASON = "Canceled by employee"
DEFAULT_RECALL_REASON = "No reason provided"


class LeaveLifecycleService(BaseService):

    def __init__(self, store, ledger: Optional[BalanceLedger] = None, clock=None):
        super().__init__(store, clock)
        self.ledger = ledger or BalanceLedger(store)
        self.policy = settings.leave_policy

    # --- evaluation ---

    def _context_for(self, draft: LeaveRequestDraft, persist_balance: bool = True) -> PolicyContext:
        users = self.store.load_users()
        if not any(u.id == draft.user_id for u in users):
            raise NotFound("User", draft.user_id)

        if persist_balance:
            balance = self.ledger.get_or_create(draft.user_id)
        else:
            balance = self.ledger.find(draft.user_id) or LeaveBalance.fresh(draft.user_id, self.ledger.allowance)
        return PolicyContext(
            applications=self.store.load_applications(),
            balance=balance,
            all_users=users,
        )

    def validate(self, draft: LeaveRequestDraft) -> ValidationResult:
        """Dry run of submit(): violations plus public holiday notices, nothing persisted."""
        context = self._context_for(draft, persist_balance=False)
        violations = evaluate(draft, context, now=self.clock(), policy=self.policy)

        holidays = []
        if draft.start_date and draft.end_date:
            holidays = find_public_holidays(draft.start_date, draft.end_date, self.policy)
        return ValidationResult(valid=not violations, violations=violations, holidays=holidays)

    # --- transitions ---

    def submit(self, draft: LeaveRequestDraft) -> LeaveApplication:
        with self.transaction():
            context = self._context_for(draft)
            now = self.clock()
            violations = evaluate(draft, context, now=now, policy=self.policy)
            if violations:
                self._logger.warning(
                    f"Leave request from user {draft.user_id} rejected by policy",
                    extra={"violations": violations},
                )
                raise ValidationFailure(violations)

            application = LeaveApplication(
                id=uuid.uuid4().hex,
                user_id=draft.user_id,
                leave_type=draft.leave_type,
                start_date=draft.start_date,
                end_date=draft.end_date,
                status=LeaveStatus.APPROVED if draft.is_emergency else LeaveStatus.PENDING,
                reason=draft.reason,
                applied_on=now,
                is_emergency=draft.is_emergency,
            )
            applications = context.applications + [application]
            self.store.save_applications(applications)

            # Emergency leave is auto-approved, so it is charged right away
            if draft.is_emergency:
                self.ledger.deduct(application.user_id, application.leave_type, application.duration)

        self._logger.info(
            f"Leave application {application.id} submitted by user {application.user_id} "
            f"({application.leave_type.value}, {application.duration} days, {application.status.value})"
        )
        return application

    def approve(self, application_id: str) -> LeaveApplication:
        with self.transaction():
            applications, index = self._locate(application_id)
            application = self._require(applications[index], "approve", LeaveStatus.PENDING)

            application = application.model_copy(update={"status": LeaveStatus.APPROVED})
            applications[index] = application
            self.store.save_applications(applications)
            self.ledger.deduct(application.user_id, application.leave_type, application.duration)

        self._logger.info(f"Leave application {application_id} approved")
        return application

    def reject(self, application_id: str, reason: Optional[str]) -> LeaveApplication:
        with self.transaction():
            applications, index = self._locate(application_id)
            application = self._require(applications[index], "reject", LeaveStatus.PENDING)
            if not reason or not reason.strip():
                raise ValidationFailure(["Please provide a reason for rejection"])

            # Nothing was deducted while pending, so no balance effect
            application = application.model_copy(
                update={"status": LeaveStatus.REJECTED, "rejection_reason": reason.strip()}
            )
            applications[index] = application
            self.store.save_applications(applications)

        self._logger.info(f"Leave application {application_id} rejected")
        return application

    def cancel(
        self, application_id: str, reason: Optional[str] = None, user_id: Optional[str] = None
    ) -> LeaveApplication:
        """Employee-initiated withdrawal of a pending request; recorded as rejected."""
        with self.transaction():
            applications, index = self._locate(application_id, user_id)
            application = self._require(applications[index], "cancel", LeaveStatus.PENDING)

            application = application.model_copy(
                update={
                    "status": LeaveStatus.REJECTED,
                    "rejection_reason": (reason or "").strip() or DEFAULT_CANCEL_REASON,
                }
            )
            applications[index] = application
            self.store.save_applications(applications)

        self._logger.info(f"Leave application {application_id} canceled by employee")
        return application

    def recall(
        self, application_id: str, reason: Optional[str] = None, user_id: Optional[str] = None
    ) -> LeaveApplication:
        with self.transaction():
            applications, index = self._locate(application_id, user_id)
            previous = self._require(
                applications[index], "recall", LeaveStatus.PENDING, LeaveStatus.APPROVED
            )

            application = previous.model_copy(
                update={
                    "status": LeaveStatus.RECALLED,
                    "recalled_on": self.clock(),
                    "recall_reason": (reason or "").strip() or DEFAULT_RECALL_REASON,
                }
            )
            applications[index] = application
            self.store.save_applications(applications)

            if previous.status == LeaveStatus.APPROVED:
                self.ledger.restore(application.user_id, application.leave_type, application.duration)

        self._logger.info(
            f"Leave application {application_id} recalled (was {previous.status.value})"
        )
        return application

    def reapply(self, application_id: str, user_id: Optional[str] = None) -> LeaveRequestDraft:
        """Pre-filled draft for resubmitting a rejected application. The original is not modified."""
        applications, index = self._locate(application_id, user_id)
        original = self._require(applications[index], "reapply for", LeaveStatus.REJECTED)

        reason = original.reason
        if not reason.startswith(REAPPLY_PREFIX):
            reason = REAPPLY_PREFIX + reason

        return LeaveRequestDraft(
            user_id=original.user_id,
            leave_type=original.leave_type,
            start_date=original.start_date,
            end_date=original.end_date,
            reason=reason,
            is_emergency=False,
        )

    def emergency_draft(self, user_id: str, prefer_tomorrow: bool = False) -> LeaveRequestDraft:
        """
        Sick-leave emergency draft for today, or tomorrow once the cutoff hour
        has passed. Between the choice hour and the cutoff the employee may
        ask for tomorrow; before noon it is always today.
        """
        now = self.clock()
        day = now.date()
        if now.hour >= self.policy.emergency_cutoff_hour:
            day += timedelta(days=1)
        elif prefer_tomorrow and now.hour >= self.policy.emergency_choice_hour:
            day += timedelta(days=1)
        return LeaveRequestDraft(
            user_id=user_id,
            leave_type=LeaveType.SICK,
            start_date=day,
            end_date=day,
            reason=EMERGENCY_REASON,
            is_emergency=True,
        )

    # --- helpers ---

    def _locate(
        self, application_id: str, user_id: Optional[str] = None
    ) -> Tuple[List[LeaveApplication], int]:
        applications = self.store.load_applications()
        for index, application in enumerate(applications):
            if application.id == application_id and (user_id is None or application.user_id == user_id):
                return applications, index
        raise NotFound("Leave application", application_id)

    @staticmethod
    def _require(application: LeaveApplication, action: str, *allowed: LeaveStatus) -> LeaveApplication:
        if application.status not in allowed:
            raise InvalidTransition(application.id, application.status.value, action)
        return application
