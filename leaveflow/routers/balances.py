from fastapi import APIRouter, Depends

from leaveflow.dependencies import get_query_service
from leaveflow.schemas.leave import LeaveBalance
from leaveflow.services.queries import LeaveQueryService

router = APIRouter(prefix="/balances", tags=["balances"])


@router.get("/{user_id}", response_model=LeaveBalance)
def get_leave_balance(user_id: str, service: LeaveQueryService = Depends(get_query_service)):
    # Created with the default allowance on first access
    return service.balance_for(user_id)
