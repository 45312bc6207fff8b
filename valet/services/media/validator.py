"""
URL and media validation predicates.

Curated products come from an LLM that can invent or mis-attribute URLs, so
every predicate fails closed: a URL that cannot be parsed is treated as
unsafe.
"""

from typing import Optional
from urllib.parse import SplitResult, urlsplit


ALLOWED_MEDIA_EXTENSIONS = frozenset({
    'jpg', 'jpeg', 'png', 'webp', 'gif', 'bmp', 'svg', 'mp4', 'webm', 'mov',
})

# Hosts known to block hotlinked media
BLOCKED_HOST_SUFFIXES = (
    'apple.com',
)

PLACEHOLDER_HOSTS = frozenset({
    'example.com',
    'cdn.example.com',
    'placeholder.com',
})

# Characters a URL host may never contain
FORBIDDEN_HOST_CHARS = frozenset(' #%/:<>?@[\\]^|')


def _parse(url: Optional[str]) -> SplitResult:
    """Split an absolute URL, raising ValueError if it is not one."""
    if not isinstance(url, str) or not url or any(c.isspace() for c in url):
        raise ValueError(f"Malformed URL: {url!r}")

    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Malformed URL: {url!r}")

    # IPv6 literals keep their colons; urlsplit already checked the brackets
    forbidden = FORBIDDEN_HOST_CHARS - {':'} if '[' in parts.netloc else FORBIDDEN_HOST_CHARS
    if any(c in forbidden for c in parts.hostname):
        raise ValueError(f"Malformed URL host: {url!r}")

    # Accessing the port validates it
    parts.port
    return parts


def is_http_url(url: Optional[str]) -> bool:
    """True if the URL parses and uses the http or https scheme."""
    try:
        return _parse(url).scheme.lower() in ('http', 'https')
    except ValueError:
        return False


def is_blocked_host(url: Optional[str]) -> bool:
    """True if the URL's host is a placeholder or a hotlink-blocking domain."""
    try:
        host = _parse(url).hostname.lower()
    except ValueError:
        return True

    if host in PLACEHOLDER_HOSTS:
        return True
    return any(host == suffix or host.endswith(f".{suffix}") for suffix in BLOCKED_HOST_SUFFIXES)


def has_allowed_extension(url: Optional[str]) -> bool:
    """True if the URL path ends with an image or video file extension."""
    try:
        path = _parse(url).path.lower()
    except ValueError:
        return False

    extension = path.rsplit('.', 1)[-1]
    return extension in ALLOWED_MEDIA_EXTENSIONS


def is_good_media_url(url: Optional[str]) -> bool:
    """True if the URL may be shown as product media."""
    if not url:
        return False
    if not is_http_url(url):
        return False
    if is_blocked_host(url):
        return False
    return has_allowed_extension(url)


def get_base_domain(hostname: str) -> str:
    """
    Naive registrable-domain extraction: the last two labels.

    Wrong for multi-label suffixes such as ``co.uk``; kept as is since a
    stricter rule could reject media that is accepted today.
    """
    parts = [part for part in hostname.lower().split('.') if part]
    return '.'.join(parts[-2:])


def is_same_site(url_a: Optional[str], url_b: Optional[str]) -> bool:
    """True if both URLs share a base domain."""
    try:
        host_a = _parse(url_a).hostname
        host_b = _parse(url_b).hostname
    except ValueError:
        return False
    return get_base_domain(host_a) == get_base_domain(host_b)
