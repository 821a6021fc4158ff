"""Search error hierarchy, mapped to HTTP responses by the API layer."""


class SearchError(Exception):
    """Base class for search failures."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class QueryValidationError(SearchError):
    """Malformed or out-of-bounds request parameters."""

    status_code = 400
    code = "invalid_request"


class IndexUnavailableError(SearchError):
    """No usable index: the build failed and nothing was loaded before."""

    status_code = 503
    code = "service_unavailable"


class ContentUnavailableError(SearchError):
    """The content collaborator cannot enumerate documents at all."""

    code = "content_unavailable"
