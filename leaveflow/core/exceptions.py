from typing import Any, Dict, List, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ValidationFailure(AppException):
    """One or more leave policy rules were violated. Always recoverable by the submitter."""
    def __init__(self, violations: List[str], message: str = "Leave request violates leave policy"):
        self.violations = list(violations)
        super().__init__(
            message=message,
            status_code=422,
            error_code="POLICY_VIOLATION",
            details={"violations": self.violations}
        )

class InvalidTransition(AppException):
    def __init__(self, application_id: str, current_status: str, action: str):
        self.application_id = application_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            message=f"Cannot {action} leave application '{application_id}' while it is {current_status}",
            status_code=409,
            error_code="INVALID_TRANSITION",
            details={"application_id": application_id, "status": current_status, "action": action}
        )

class NotFound(AppException):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} '{entity_id}' was not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class StoreUnavailable(AppException):
    def __init__(self, message: str = "Leave store is currently unavailable"):
        super().__init__(
            message=message,
            status_code=503,
            error_code="STORE_UNAVAILABLE"
        )

class StoreConflict(AppException):
    """The collection was modified by another writer since it was read."""
    def __init__(self, key: str):
        super().__init__(
            message=f"The '{key}' collection was modified concurrently, please retry",
            status_code=409,
            error_code="STORE_CONFLICT",
            details={"collection": key}
        )
