import logging
from typing import List

from fastapi import APIRouter, Depends

from leaveflow.dependencies import get_directory_service
from leaveflow.schemas.user import AssignmentUpdate, ManagerAssignment, User
from leaveflow.services.directory import DirectoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reset", response_model=List[User])
def reset_application_data(service: DirectoryService = Depends(get_directory_service)):
    """Remove all users, balances and applications and reseed the demo users."""
    return service.reset()


@router.get("/assignments", response_model=List[ManagerAssignment])
def list_manager_assignments(service: DirectoryService = Depends(get_directory_service)):
    return service.list_assignments()


@router.put("/assignments/{manager_id}", response_model=ManagerAssignment)
def save_manager_assignment(
    manager_id: str,
    body: AssignmentUpdate,
    service: DirectoryService = Depends(get_directory_service),
):
    assignment = service.assign_employees(manager_id, body.employee_ids)
    logger.info(f"Manager {manager_id} now has {len(assignment.employee_ids)} employee(s)")
    return assignment
