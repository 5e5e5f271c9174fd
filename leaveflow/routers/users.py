from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from leaveflow.dependencies import get_directory_service, get_lifecycle_service, get_query_service
from leaveflow.schemas.leave import Dashboard, EmergencyUsage, LeaveRequestDraft
from leaveflow.schemas.user import ProfileUpdate, User, UserRole
from leaveflow.services.directory import DirectoryService
from leaveflow.services.lifecycle import LeaveLifecycleService
from leaveflow.services.queries import LeaveQueryService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[User])
def list_users(role: Optional[UserRole] = None, service: DirectoryService = Depends(get_directory_service)):
    return service.list_users(role)


@router.get("/{user_id}", response_model=User)
def get_user(user_id: str, service: DirectoryService = Depends(get_directory_service)):
    return service.get_user(user_id)


@router.patch("/{user_id}", response_model=User)
def update_profile(
    user_id: str,
    changes: ProfileUpdate,
    service: DirectoryService = Depends(get_directory_service),
):
    return service.update_profile(user_id, changes)


@router.get("/{user_id}/manager", response_model=Optional[User])
def get_assigned_manager(user_id: str, service: DirectoryService = Depends(get_directory_service)):
    return service.manager_for(user_id)


@router.get("/{user_id}/dashboard", response_model=Dashboard)
def get_dashboard(user_id: str, service: LeaveQueryService = Depends(get_query_service)):
    return service.dashboard(user_id)


@router.get("/{user_id}/emergency-usage", response_model=EmergencyUsage)
def get_emergency_usage(user_id: str, service: LeaveQueryService = Depends(get_query_service)):
    return service.emergency_usage_for(user_id)


@router.get("/{user_id}/emergency-draft", response_model=LeaveRequestDraft)
def get_emergency_draft(
    user_id: str,
    prefer_tomorrow: bool = Query(False, alias="preferTomorrow"),
    directory: DirectoryService = Depends(get_directory_service),
    service: LeaveLifecycleService = Depends(get_lifecycle_service),
):
    directory.get_user(user_id)
    return service.emergency_draft(user_id, prefer_tomorrow=prefer_tomorrow)
