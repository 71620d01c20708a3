"""
Custom exception classes
"""
from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Exception raised for invalid input that passed schema validation"""
    def __init__(self, detail: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(HTTPException):
    """Exception raised when a record does not exist"""
    def __init__(self, detail: str, status_code: int = status.HTTP_404_NOT_FOUND):
        super().__init__(status_code=status_code, detail=detail)


class ConflictError(HTTPException):
    """Exception raised when a write collides with existing data"""
    def __init__(self, detail: str, status_code: int = status.HTTP_409_CONFLICT):
        super().__init__(status_code=status_code, detail=detail)


class SystemAgentProtectedError(HTTPException):
    """Exception raised when a mutation targets the System Agent"""
    def __init__(self, action: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=f"Cannot {action} the System Agent")


class DatabaseError(HTTPException):
    """Exception raised for database errors"""
    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)
