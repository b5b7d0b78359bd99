from typing import Optional, Union

from fastapi import status


class AppExceptionBase(Exception):
    """Base class for application-specific exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "INTERNAL_SERVER_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ResourceNotFoundError(AppExceptionBase):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_name: str, resource_id: Union[str, int]):
        message = f"The {resource_name} with ID '{resource_id}' was not found."
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND, code="RESOURCE_NOT_FOUND")


class DatabaseError(AppExceptionBase):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, code="DATABASE_ERROR")


class DuplicateResourceError(DatabaseError):
    """Raised when an insert violates a uniqueness constraint."""

    def __init__(self, resource_name: str, identifier: Optional[str] = None):
        message = f"A {resource_name} with the same identifier already exists"
        if identifier:
            message += f": {identifier}"
        super().__init__(message=message)
        self.status_code = status.HTTP_409_CONFLICT
        self.code = "DUPLICATE_RESOURCE"


class ConfigurationError(AppExceptionBase):
    """Raised when there's an issue with the application's configuration."""

    def __init__(self, message: str = "A configuration error occurred."):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, code="CONFIGURATION_ERROR")


class ExternalServiceError(AppExceptionBase):
    """Raised when an external service call fails."""

    def __init__(self, service_name: str, original_message: Optional[str] = None):
        message = f"An error occurred while communicating with {service_name}."
        if original_message:
            message += f" Details: {original_message}"
        super().__init__(message=message, status_code=status.HTTP_502_BAD_GATEWAY, code="EXTERNAL_SERVICE_ERROR")
        self.service_name = service_name
        self.original_message = original_message


class GitLabApiError(ExternalServiceError):
    """Raised when a GitLab API request fails or returns a malformed response.

    `http_status` is None for network failures and timeouts.
    """

    def __init__(self, original_message: str, http_status: Optional[int] = None):
        if http_status is not None:
            original_message = f"HTTP {http_status}: {original_message}"
        super().__init__(service_name="GitLab", original_message=original_message)
        self.code = "GITLAB_API_ERROR"
        self.http_status = http_status


class ValidationError(AppExceptionBase):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Validation failed. Please check your input."):
        super().__init__(message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, code="VALIDATION_ERROR")


class CommitTranslationError(ValidationError):
    """Raised when a remote commit record lacks fields required for storage."""

    def __init__(self, message: str, sha: Optional[str] = None):
        if sha:
            message = f"{message} (commit {sha})"
        super().__init__(message=message)
        self.code = "COMMIT_TRANSLATION_ERROR"
        self.sha = sha
