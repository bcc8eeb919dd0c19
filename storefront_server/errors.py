"""Error types raised by the storefront client and services."""

from enum import Enum
from typing import Optional

# Upstream HTTP statuses passed through to our own clients unchanged
PASSTHROUGH_STATUSES = {403, 404, 429}

USER_MESSAGES = {
    403: "Authentication error with Shopify. Please check your access token and permissions.",
    404: "Product not found or API endpoint is incorrect.",
    429: "Rate limit exceeded. Too many requests to Shopify API.",
}
DEFAULT_USER_MESSAGE = "An error occurred while contacting Shopify."


class UpstreamErrorKind(str, Enum):
    HTTP_STATUS = "http_status"
    INVALID_PAYLOAD = "invalid_payload"
    GRAPHQL_ERROR = "graphql_error"
    EMPTY_RESPONSE = "empty_response"
    TRANSPORT = "transport"


class StorefrontError(Exception):
    """Base class for storefront errors."""

    status_code: int = 500
    user_message: str = DEFAULT_USER_MESSAGE


class UpstreamError(StorefrontError):
    """A request to the Shopify GraphQL API failed."""

    def __init__(
        self,
        kind: UpstreamErrorKind,
        message: Optional[str] = None,
        code: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.code = code
        if message is None:
            message = _default_message(kind, code)
        self.message = message
        super().__init__(message)

        if kind is UpstreamErrorKind.HTTP_STATUS and code in PASSTHROUGH_STATUSES:
            self.status_code = code
            self.user_message = USER_MESSAGES[code]
        else:
            self.status_code = 500
            self.user_message = DEFAULT_USER_MESSAGE

    @property
    def retryable(self) -> bool:
        """Transport failures, rate limits and 5xx responses may succeed on retry."""
        if self.kind is UpstreamErrorKind.TRANSPORT:
            return True
        if self.kind is UpstreamErrorKind.HTTP_STATUS and self.code is not None:
            return self.code == 429 or self.code >= 500
        return False

    def __repr__(self) -> str:
        return f"UpstreamError(kind={self.kind.value!r}, code={self.code!r}, message={self.message!r})"


class ProductNotFoundError(StorefrontError):
    """The requested product does not exist."""

    status_code = 404
    user_message = "Product not found."

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Product not found: {identifier}")


class CartNotReadyError(StorefrontError):
    """The cart was used before it finished loading."""


def _default_message(kind: UpstreamErrorKind, code: Optional[int]) -> str:
    if kind is UpstreamErrorKind.HTTP_STATUS:
        return f"Shopify GraphQL error: {code}"
    if kind is UpstreamErrorKind.INVALID_PAYLOAD:
        return "Invalid JSON response from Shopify"
    if kind is UpstreamErrorKind.EMPTY_RESPONSE:
        return "No data returned from Shopify"
    if kind is UpstreamErrorKind.TRANSPORT:
        return "Could not reach Shopify"
    return "GraphQL error occurred"
