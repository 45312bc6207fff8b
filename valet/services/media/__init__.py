"""Media and URL trust services"""

from .validator import (
    ALLOWED_MEDIA_EXTENSIONS,
    BLOCKED_HOST_SUFFIXES,
    PLACEHOLDER_HOSTS,
    get_base_domain,
    has_allowed_extension,
    is_blocked_host,
    is_good_media_url,
    is_http_url,
    is_same_site,
)
from .sanitizer import sanitize_products
from .verifier import LinkVerifier, build_verifier

__all__ = [
    "ALLOWED_MEDIA_EXTENSIONS",
    "BLOCKED_HOST_SUFFIXES",
    "PLACEHOLDER_HOSTS",
    "get_base_domain",
    "has_allowed_extension",
    "is_blocked_host",
    "is_good_media_url",
    "is_http_url",
    "is_same_site",
    "sanitize_products",
    "LinkVerifier",
    "build_verifier",
]
