from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from leaveflow.dependencies import get_query_service
from leaveflow.schemas.leave import CalendarDay, ManagerQueue
from leaveflow.services.queries import LeaveQueryService

router = APIRouter(tags=["team"])


@router.get("/calendar", response_model=List[CalendarDay])
def leave_calendar(
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    user_id: Optional[str] = Query(None, alias="userId"),
    service: LeaveQueryService = Depends(get_query_service),
):
    """Approved leave per day of the month, for the whole team or one user."""
    return service.calendar(year, month, user_id=user_id)


@router.get("/manager/queue", response_model=ManagerQueue)
def manager_approval_queue(
    manager_id: Optional[str] = Query(None, alias="managerId"),
    service: LeaveQueryService = Depends(get_query_service),
):
    return service.manager_queue(manager_id)
