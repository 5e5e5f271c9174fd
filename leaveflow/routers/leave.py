from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from leaveflow.dependencies import get_lifecycle_service, get_query_service
from leaveflow.schemas.leave import (
    LeaveApplication,
    LeaveRequestDraft,
    LeaveStatus,
    TransitionRequest,
    ValidationResult,
)
from leaveflow.services.lifecycle import LeaveLifecycleService
from leaveflow.services.queries import LeaveQueryService

router = APIRouter(
    prefix="/applications",
    tags=["leave"]
)


@router.post("", response_model=LeaveApplication, status_code=status.HTTP_201_CREATED)
def submit_leave_application(
    draft: LeaveRequestDraft,
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.submit(draft)


@router.post("/validate", response_model=ValidationResult)
def validate_leave_application(
    draft: LeaveRequestDraft,
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.validate(draft)


@router.get("", response_model=List[LeaveApplication])
def list_leave_applications(
    user_id: Optional[str] = Query(None, alias="userId"),
    status: Optional[LeaveStatus] = None,
    service: LeaveQueryService = Depends(get_query_service),
):
    return service.list_applications(user_id=user_id, status=status)


@router.get("/{application_id}", response_model=LeaveApplication)
def get_leave_application(application_id: str, service: LeaveQueryService = Depends(get_query_service)):
    return service.get_application(application_id)


@router.post("/{application_id}/approve", response_model=LeaveApplication)
def approve_leave_application(
    application_id: str,
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.approve(application_id)


@router.post("/{application_id}/reject", response_model=LeaveApplication)
def reject_leave_application(
    application_id: str,
    body: TransitionRequest,
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.reject(application_id, body.reason)


@router.post("/{application_id}/cancel", response_model=LeaveApplication)
def cancel_leave_application(
    application_id: str,
    body: Optional[TransitionRequest] = Body(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.cancel(application_id, body.reason if body else None, user_id=user_id)


@router.post("/{application_id}/recall", response_model=LeaveApplication)
def recall_leave_application(
    application_id: str,
    body: Optional[TransitionRequest] = Body(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.recall(application_id, body.reason if body else None, user_id=user_id)


@router.get("/{application_id}/reapply", response_model=LeaveRequestDraft)
def reapply_leave_application(
    application_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    return service.reapply(application_id, user_id=user_id)
