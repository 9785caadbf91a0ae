"""URL and identity-handle normalization helpers."""

from urllib.parse import urlsplit

import httpx

from shared.errors.product_errors import InvalidURLError

ALLOWED_SCHEMES = ("http", "https")


def _check_hostname(url: str, hostname: str) -> None:
    if any(ch.isspace() for ch in hostname) or any(not label for label in hostname.split(".")):
        raise InvalidURLError(f"Invalid URL format: {url}")
    try:
        # IDNA encoding, the same check the HTTP client applies before fetching
        httpx.URL(url)
    except httpx.InvalidURL:
        raise InvalidURLError(f"Invalid hostname in URL: {url}")


def validate_url(url: str) -> str:
    """Check that a URL is absolute, uses http(s) and names a well-formed host.

    Args:
        url (str): The URL to validate.

    Returns:
        str: The stripped URL.

    Raises:
        InvalidURLError: On a missing or malformed host (whitespace, empty
            labels, not IDNA-encodable), an unparsable URL or any other scheme.
    """
    if not url or not url.strip():
        raise InvalidURLError("URL is required")
    url = url.strip()
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        raise InvalidURLError(f"Invalid URL format: {url}")
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURLError("Only HTTP and HTTPS URLs are allowed")
    if not hostname:
        raise InvalidURLError(f"Invalid URL format: {url}")
    _check_hostname(url, hostname)
    return url


def normalize_product_url(url: str) -> str:
    """Reduce a product URL to its canonical root-domain form.

    ``https://Example.com/`` and ``https://example.com`` both become
    ``https://example.com``. Paths other than "/" and query strings are rejected
    rather than dropped, so a deep link is never silently indexed as its domain.

    Raises:
        InvalidURLError: If the URL is invalid or not a root-domain URL.
    """
    parts = urlsplit(validate_url(url))
    if parts.path not in ("", "/"):
        raise InvalidURLError(
            "Only root domain URLs are allowed (e.g., https://example.com). Please remove any paths."
        )
    if parts.query:
        raise InvalidURLError("Only root domain URLs are allowed. Please remove query parameters.")

    host = parts.hostname.lower()
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme.lower()}://{host}"


def url_variants(url: str) -> list[str]:
    """Both trailing-slash variants of a stored URL, used for duplicate lookups."""
    base = url.rstrip("/")
    return [base, base + "/"]


def normalize_handle(handle: str | None) -> str | None:
    """Lower-case an identity handle and strip a leading '@'. Blank handles become None."""
    if handle is None:
        return None
    cleaned = handle.strip().lstrip("@").strip().lower()
    return cleaned or None
