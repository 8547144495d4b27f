"""URL helpers shared by target planning and store clients."""

from urllib.parse import quote, urlparse


def public_url(base_url: str, key: str) -> str:
    """Join a base URL and an object key, percent-encoding the key."""
    return f"{base_url.rstrip('/')}/{quote(key, safe='/')}"


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
