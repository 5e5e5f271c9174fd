from pydantic import BaseModel, Field
from typing import List, Optional
import enum


class UserRole(str, enum.Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"
    MANAGER = "manager"


class User(BaseModel):
    id: str
    name: str
    role: UserRole = UserRole.EMPLOYEE
    email: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)


class ManagerAssignment(BaseModel):
    manager_id: str
    employee_ids: List[str] = Field(default_factory=list)


class AssignmentUpdate(BaseModel):
    employee_ids: List[str] = Field(default_factory=list)
