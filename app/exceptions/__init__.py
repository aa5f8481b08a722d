"""Custom exceptions for the invoice application."""

class AppError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['success'] = False
        rv['error'] = self.message
        return rv

class BusinessLogicError(AppError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(AppError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InvalidTransitionError(BusinessLogicError):
    """Raised when an invoice status change is not allowed from its current state."""
    def __init__(self, current_status, target_status):
        message = f"Cannot move invoice from '{current_status}' to '{target_status}'"
        super().__init__(message, status_code=409,
                         payload={'current_status': current_status, 'target_status': target_status})

class AuthenticationError(AppError):
    """Raised when the request carries no valid API key."""
    def __init__(self, message="Invalid or missing API key"):
        super().__init__(message, 401)

class UnauthorizedError(AppError):
    """Raised when a caller lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)
