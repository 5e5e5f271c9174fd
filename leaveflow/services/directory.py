import logging
from typing import List, Optional

from leaveflow.core.exceptions import NotFound, ValidationFailure
from leaveflow.schemas.user import ManagerAssignment, ProfileUpdate, User, UserRole
from leaveflow.services.base import BaseService
from leaveflow.services.store import APPLICATIONS_KEY, BALANCES_KEY

logger = logging.getLogger(__name__)

DEMO_USERS: List[User] = [
    User(id="1", name="John Doe", role=UserRole.EMPLOYEE, email="john@example.com"),
    User(id="2", name="Jane Smith", role=UserRole.ADMIN, email="jane@example.com"),
    User(id="3", name="Mike Johnson", role=UserRole.MANAGER, email="mike@example.com"),
    User(id="4", name="Sarah Williams", role=UserRole.EMPLOYEE, email="sarah@example.com"),
    User(id="5", name="Alex Brown", role=UserRole.EMPLOYEE, email="alex@example.com"),
    User(id="6", name="Emily Chen", role=UserRole.EMPLOYEE, email="emily@example.com"),
    User(id="7", name="David Kim", role=UserRole.EMPLOYEE, email="david@example.com"),
    User(id="8", name="Maria Rodriguez", role=UserRole.EMPLOYEE, email="maria@example.com"),
    User(id="9", name="Robert Taylor", role=UserRole.MANAGER, email="robert@example.com"),
    User(id="10", name="Lisa Johnson", role=UserRole.EMPLOYEE, email="lisa@example.com"),
    User(id="11", name="Michael Patel", role=UserRole.EMPLOYEE, email="michael@example.com"),
    User(id="12", name="Jennifer Wong", role=UserRole.ADMIN, email="jennifer@example.com"),
    User(id="13", name="Thomas Wilson", role=UserRole.EMPLOYEE, email="thomas@example.com"),
    User(id="14", name="Sophia Garcia", role=UserRole.EMPLOYEE, email="sophia@example.com"),
    User(id="15", name="Daniel Martinez", role=UserRole.MANAGER, email="daniel@example.com"),
]


def resolve_manager(
    assignments: List[ManagerAssignment], users: List[User], employee_id: str
) -> Optional[User]:
    """The manager whose assignment lists this employee, if any."""
    for assignment in assignments:
        if employee_id in assignment.employee_ids:
            return next((u for u in users if u.id == assignment.manager_id), None)
    return None


class DirectoryService(BaseService):
    """User directory: demo seeding, profile edits and manager assignments."""

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        users = self.store.load_users()
        if role is not None:
            users = [u for u in users if u.role == role]
        return users

    def get_user(self, user_id: str) -> User:
        user = next((u for u in self.store.load_users() if u.id == user_id), None)
        if user is None:
            raise NotFound("User", user_id)
        return user

    def seed_demo_users(self) -> bool:
        with self.transaction():
            if self.store.load_users():
                return False
            self.store.save_users(list(DEMO_USERS))
        logger.info(f"Seeded {len(DEMO_USERS)} demo users")
        return True

    def reset(self) -> List[User]:
        """Drop users, balances and applications, then reseed the demo users."""
        with self.transaction():
            self.store.clear(BALANCES_KEY)
            self.store.clear(APPLICATIONS_KEY)
            self.store.save_users(list(DEMO_USERS))
        logger.warning("Application data reset to demo users")
        return list(DEMO_USERS)

    def update_profile(self, user_id: str, changes: ProfileUpdate) -> User:
        with self.transaction():
            users = self.store.load_users()
            for index, user in enumerate(users):
                if user.id == user_id:
                    break
            else:
                raise NotFound("User", user_id)

            updated = user.model_copy(update=changes.model_dump(exclude_none=True))
            users[index] = updated
            self.store.save_users(users)
        return updated

    # --- manager assignments ---

    def list_assignments(self) -> List[ManagerAssignment]:
        return self.store.load_manager_assignments()

    def assign_employees(self, manager_id: str, employee_ids: List[str]) -> ManagerAssignment:
        """
        Replace the employee set of one manager. An employee can only have a
        single manager, so anyone listed here is removed from other managers.
        """
        with self.transaction():
            users = {u.id: u for u in self.store.load_users()}
            manager = users.get(manager_id)
            if manager is None:
                raise NotFound("User", manager_id)

            errors = []
            if manager.role != UserRole.MANAGER:
                errors.append(f"User '{manager_id}' is not a manager")
            wanted = list(dict.fromkeys(employee_ids))
            for employee_id in wanted:
                employee = users.get(employee_id)
                if employee is None:
                    errors.append(f"User '{employee_id}' does not exist")
                elif employee.role != UserRole.EMPLOYEE:
                    errors.append(f"User '{employee_id}' is not an employee")
            if errors:
                raise ValidationFailure(errors, message="Invalid manager assignment")

            assignments = []
            for assignment in self.store.load_manager_assignments():
                if assignment.manager_id == manager_id:
                    continue
                remaining = [e for e in assignment.employee_ids if e not in wanted]
                if len(remaining) != len(assignment.employee_ids):
                    logger.info(f"Moving employees from manager {assignment.manager_id} to {manager_id}")
                assignments.append(assignment.model_copy(update={"employee_ids": remaining}))

            result = ManagerAssignment(manager_id=manager_id, employee_ids=wanted)
            assignments.append(result)
            self.store.save_manager_assignments(assignments)
        return result

    def manager_for(self, employee_id: str) -> Optional[User]:
        self.get_user(employee_id)
        return resolve_manager(
            self.store.load_manager_assignments(), self.store.load_users(), employee_id
        )
