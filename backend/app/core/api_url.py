"""API URL builder for clients of this backend."""

from app.core.errors import ConfigurationError


def build_api_url(base: str | None, path: str | None = None) -> str:
    """Join base and path with exactly one slash between them."""
    if not base:
        raise ConfigurationError("API_URL is not set")
    if not path:
        return base
    return base.rstrip("/") + "/" + path.lstrip("/")
