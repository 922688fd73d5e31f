class CatalogServiceError(Exception):
    status_code = 500
    default_error = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error: str | None = None,
        status_code: int | None = None,
        errors: list[dict] | None = None,
    ):
        self.error = error or self.default_error
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        super().__init__(message)


class ValidationError(CatalogServiceError):
    status_code = 400
    default_error = "VALIDATION_ERROR"


class AuthenticationError(CatalogServiceError):
    status_code = 401
    default_error = "UNAUTHORIZED"


class AuthorizationError(CatalogServiceError):
    status_code = 403
    default_error = "FORBIDDEN"


class NotFoundError(CatalogServiceError):
    status_code = 404
    default_error = "NOT_FOUND"


class UnexpectedError(CatalogServiceError):
    status_code = 500
    default_error = "INTERNAL_ERROR"
