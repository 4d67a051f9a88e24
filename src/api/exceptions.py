"""
Custom exception classes for the post generator backend.

Each exception carries the HTTP status code and default message used when the
API translates it into a ``{"message": ...}`` response.
"""


class PostGeneratorError(Exception):
    """Base exception for all post generator errors."""

    status_code = 500
    default_message = "Failed to handle request"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(PostGeneratorError):
    """Raised when a setting has an unsupported value."""
    pass


# =============================================================================
# Request Errors
# =============================================================================

class InvalidPostIdError(PostGeneratorError):
    """Raised when a post id in the path is not an integer."""
    status_code = 400
    default_message = "Invalid post ID"


class AuthRequiredError(PostGeneratorError):
    """Raised when the caller's identity is missing or cannot be verified."""
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(PostGeneratorError):
    """Raised when a verified identity does not match the requested resource."""
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(PostGeneratorError):
    """Raised when a user or post cannot be resolved."""
    status_code = 404
    default_message = "Not found"


# =============================================================================
# Service Errors
# =============================================================================

class GenerationError(PostGeneratorError):
    """Raised when the generative API fails or returns no text."""
    default_message = "Failed to generate content"


class StorageError(PostGeneratorError):
    """Raised when the backing database cannot complete an operation."""
    default_message = "Storage operation failed"
