"""Domain/name normalization and response-shape helpers shared by the providers."""

import re
from collections.abc import Iterable
from typing import Any

# Profile hosts that never yield a business contact
SOCIAL_MEDIA_DOMAINS: frozenset[str] = frozenset(
    {
        "youtube.com",
        "www.youtube.com",
        "youtu.be",
        "instagram.com",
        "www.instagram.com",
        "tiktok.com",
        "www.tiktok.com",
        "twitter.com",
        "www.twitter.com",
        "x.com",
        "facebook.com",
        "www.facebook.com",
        "fb.com",
        "linkedin.com",
        "www.linkedin.com",
    }
)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def clean_domain(domain: str | None) -> str:
    """
    Reduce a free-form domain/URL to a bare lowercase host.

    Example:
        clean_domain("https://www.Example.com/page?x=1")  # "example.com"
    """
    if not domain:
        return ""
    value = domain.strip()
    # Loop so "https://www.www.x" style inputs are stable on a second pass
    while True:
        stripped = _SCHEME_RE.sub("", value)
        if stripped.lower().startswith("www."):
            stripped = stripped[4:]
        stripped = stripped.split("/")[0].split("?")[0].strip()
        if stripped == value:
            break
        value = stripped
    return value.lower()


def parse_name(full_name: str | None) -> tuple[str, str]:
    """Split a full name into (first_name, last_name); last_name may be empty."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def is_social_media_domain(domain: str) -> bool:
    return clean_domain(domain) in SOCIAL_MEDIA_DOMAINS


def first_list(payload: Any, keys: Iterable[str]) -> list:
    """
    Return the first list found in an API payload.

    The payload itself may be a bare list, otherwise each key is probed in order.
    Anything else yields an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []
