"""Subdomain generation and validation for wedding sites."""

import re
import secrets
import string
from typing import Optional

RESERVED_SUBDOMAINS = frozenset({
    "www", "app", "api", "admin", "mail", "ftp", "blog", "shop", "store",
    "support", "help", "docs", "status", "dev", "test", "staging", "prod",
    "cdn", "static", "assets", "images", "files", "download", "upload",
})

_SUBDOMAIN_RE = re.compile(r"^[a-z0-9-]+$")
_ALPHABET = string.ascii_lowercase + string.digits


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def generate_subdomain(wedding_name: str) -> str:
    """Slug of the name plus a random 6-character suffix."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    slug = _slugify(wedding_name)[:43].strip("-")
    return f"{slug}-{suffix}" if slug else f"wedding-{suffix}"


def validate_subdomain(subdomain: str) -> Optional[str]:
    """Return an error message, or None when the subdomain is well-formed."""
    if len(subdomain) < 3:
        return "Subdomain must be at least 3 characters long"
    if len(subdomain) > 50:
        return "Subdomain must be no more than 50 characters long"
    if not _SUBDOMAIN_RE.match(subdomain):
        return "Subdomain can only contain lowercase letters, numbers, and hyphens"
    if subdomain.startswith("-") or subdomain.endswith("-"):
        return "Subdomain cannot start or end with a hyphen"
    if subdomain in RESERVED_SUBDOMAINS:
        return "This subdomain is reserved and cannot be used"
    return None


def generate_wedding_code(wedding_name: str) -> str:
    compact = re.sub(r"\s+", "", wedding_name).upper()
    compact = re.sub(r"[^A-Z0-9]", "", compact)[:20] or "WEDDING"
    return f"{compact}{secrets.randbelow(10000):04d}"
