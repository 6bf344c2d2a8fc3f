"""
Shared error handling for the Criteria service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""
    
    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class CriteriaException(Exception):
    """Base exception for Criteria service errors."""
    
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)
    
    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(CriteriaException):
    """Requested record does not exist."""
    
    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ConfigurationNotFoundError(NotFoundError):
    """No configuration is registered under the requested key."""
    
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Configuration '{key}' not found", {"key": key})


class ValidationError(CriteriaException):
    """Validation-related errors."""
    
    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ServiceError(CriteriaException):
    """Service-related errors."""
    
    def __init__(self, message: str = "Service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_ERROR", message, details)
