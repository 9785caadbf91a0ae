"""Error taxonomy of the indexing and search core.

Every error carries a stable ``kind`` string, a human readable message and an
optional remediation hint, so callers can render a specific message without
parsing text.
"""


class ProductError(Exception):
    """Base class of all errors raised by the indexing/search core."""

    kind: str = "ProductError"
    retryable: bool = False

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_dict(self) -> dict:
        """Structured representation for transports (kind, message, hint, retryable)."""
        return {
            "kind": self.kind,
            "message": self.message,
            "hint": self.hint,
            "retryable": self.retryable,
        }


class InvalidURLError(ProductError):
    kind = "InvalidURL"


class DuplicateURLError(ProductError):
    kind = "DuplicateURL"

    def __init__(self, url: str, existing_id: str | None = None) -> None:
        super().__init__(f"This product URL is already indexed: {url}")
        self.url = url
        self.existing_id = existing_id


class ExtractionBlockedError(ProductError):
    """The site answered but refused automated access (4xx/5xx)."""

    kind = "ExtractionBlocked"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, hint="The website blocks automated access. Enter name and description manually.")
        self.status_code = status_code


class ExtractionUnreachableError(ProductError):
    kind = "ExtractionUnreachable"


class EmbeddingUnavailableError(ProductError):
    kind = "EmbeddingUnavailable"
    retryable = True


class StoreUnavailableError(ProductError):
    kind = "StoreUnavailable"
    retryable = True


class OwnershipValidationError(ProductError):
    """The page's creator meta tag does not match the claimed handle."""

    kind = "OwnershipValidationFailed"

    def __init__(self, message: str, expected_meta: str) -> None:
        super().__init__(message, hint=f"Add this meta tag to your website: {expected_meta}")
        self.expected_meta = expected_meta


class RateLimitedError(ProductError):
    kind = "RateLimited"

    def __init__(self, hours_remaining: int) -> None:
        super().__init__(
            f"Rate limit exceeded. You can re-index this product in {hours_remaining} hours.",
            hint=f"Retry in {hours_remaining} hours.",
        )
        self.hours_remaining = hours_remaining


class ProductNotFoundError(ProductError):
    kind = "NotFound"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class ProductValidationError(ProductError):
    kind = "ValidationError"
