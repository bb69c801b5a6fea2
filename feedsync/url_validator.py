"""
URL Validator - restrict outbound requests to plain web URLs.

Only http and https URLs with a hostname are ever dereferenced. Feed links,
page links and icon candidates all pass through here before any request.
"""

from urllib.parse import urlparse


class URLValidationError(Exception):
    """Raised when a URL must not be fetched."""

    pass


# Allowed URL schemes
ALLOWED_SCHEMES = {"http", "https"}


def validate_url(url: str) -> str:
    """
    Validate a URL before fetching it.

    Args:
        url: The URL to validate

    Returns:
        The URL, stripped of surrounding whitespace

    Raises:
        URLValidationError: If the scheme is not http/https or the host is missing
    """
    url = (url or "").strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise URLValidationError(f"Invalid URL format: {e}")

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise URLValidationError(
            f"URL scheme '{parsed.scheme}' is not allowed. Use http or https."
        )

    if not parsed.hostname:
        raise URLValidationError("URL must include a hostname")

    return url


def is_fetchable(url: str | None) -> bool:
    """Return True if the URL would pass validate_url."""
    if not url:
        return False
    try:
        validate_url(url)
        return True
    except URLValidationError:
        return False


def site_root(url: str) -> str:
    """Return scheme://host[:port] for a URL, without credentials or path."""
    parsed = urlparse(validate_url(url))
    host = parsed.netloc.rsplit("@", 1)[-1]
    return f"{parsed.scheme}://{host}"


def site_favicon_url(url: str) -> str:
    """Return the conventional /favicon.ico location for a page URL."""
    return f"{site_root(url)}/favicon.ico"
