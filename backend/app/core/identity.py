"""Identity Helpers — pure transforms around identity-provider data.

Invariants:
    - Usernames containing "@" are treated as emails and passed through unchanged
    - Storage keys follow the provider SDK convention sb-<project-ref>-auth-token
    - No IO: callers pass the current time explicitly
"""

from datetime import datetime, timezone
from urllib.parse import urlparse

DEFAULT_EMAIL_DOMAIN = "app.local"


def format_username_as_email(username: str, domain: str = DEFAULT_EMAIL_DOMAIN) -> str:
    """Map a bare username onto the provider's email-based login."""
    if "@" in username:
        return username
    return f"{username}@{domain}"


def project_ref(supabase_url: str) -> str:
    """First DNS label of the project URL host ("abcd" for abcd.supabase.co)."""
    host = urlparse(supabase_url).hostname or supabase_url
    return host.split(".")[0]


def storage_key_for(supabase_url: str) -> str:
    return f"sb-{project_ref(supabase_url)}-auth-token"


def display_name_for(email: str | None, user_metadata: dict | None) -> str:
    """Pick a human-readable name: metadata name, then username, then email local part."""
    meta = user_metadata or {}
    for key in ("name", "username"):
        value = meta.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    if email:
        return email.split("@", 1)[0]
    return "unknown"


def session_expires_within(
    expires_at: int | None, now: datetime, seconds: float,
) -> bool:
    """True when a session expiring at expires_at (unix seconds) has <= seconds left.

    Sessions without an expiry never count as expiring.
    """
    if expires_at is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return expires_at - now.timestamp() <= seconds
