"""Custom exceptions for the storefront client."""

from typing import Optional


class ShopClientError(Exception):
    """Base class for storefront client exceptions.

    All custom exceptions inherit from this class so callers can catch
    every client-originated failure with a single except clause.
    """

    def __init__(self, message: str = "Storefront client error"):
        self.message = message
        super().__init__(message)


class InputValidationError(ShopClientError, ValueError):
    """Raised when caller input is rejected before any network call."""


class InvalidHandleError(InputValidationError):
    """Raised when a product or collection handle is empty or malformed."""

    def __init__(self, handle: object = None, detail: str = "Invalid handle format"):
        self.handle = handle
        super().__init__(detail)


class InvalidPaginationError(InputValidationError):
    """Raised when page/limit are outside the accepted range."""

    def __init__(self, page: object = None, limit: object = None, detail: Optional[str] = None):
        self.page = page
        self.limit = limit
        super().__init__(
            detail
            or "Invalid pagination parameters: page must be >= 1, limit must be between 1 and 250"
        )


class InvalidStoreUrlError(InputValidationError):
    """Raised when the store URL cannot be normalized to a valid domain."""


class FetchError(ShopClientError):
    """Raised when a storefront request fails for a reason other than "not found".

    The message is enriched with the failing URL and the operation context
    so that logs are useful without the original traceback.

    Attributes:
        context: Short description of the operation (e.g. "fetching products")
        url: The URL being fetched
        status_code: HTTP status code if the failure carried one
        original_error: The underlying exception, if any
    """

    def __init__(
        self,
        context: str,
        url: str,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ):
        self.context = context
        self.url = url
        self.status_code = status_code
        self.original_error = original_error

        message = f"Error {context}"
        if original_error is not None and str(original_error):
            message += f": {original_error}"
        elif original_error is not None:
            message += f": {type(original_error).__name__}"
        else:
            message += ": Unknown error occurred"
        message += f" (URL: {url})"
        if status_code:
            message += f" (Status: {status_code})"
        super().__init__(message)

    @classmethod
    def wrap(cls, error: BaseException, context: str, url: str) -> "FetchError":
        """Build a FetchError from an arbitrary exception.

        An existing FetchError keeps its status code; HTTP status errors
        contribute theirs.
        """
        status_code = getattr(error, "status_code", None)
        response = getattr(error, "response", None)
        if status_code is None and response is not None:
            status_code = getattr(response, "status_code", None)
        return cls(context, url, status_code=status_code, original_error=error)


class HTTPStatusFetchError(ShopClientError):
    """Raised internally when a storefront endpoint answers with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}".rstrip(": "))


class RateLimiterClosedError(ShopClientError):
    """Raised for tasks still queued when their rate-limit bucket is closed."""

    def __init__(self, scope: str = "global"):
        self.scope = scope
        super().__init__(f"Rate limiter '{scope}' was closed before the task was admitted")
