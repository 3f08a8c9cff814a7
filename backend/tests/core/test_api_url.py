import pytest

from app.core.api_url import build_api_url
from app.core.errors import ConfigurationError


def test_base_only():
    assert build_api_url("https://api.example.com") == "https://api.example.com"


def test_joins_with_single_slash():
    assert build_api_url("https://api.example.com///", "//tests") == "https://api.example.com/tests"
    assert build_api_url("https://api.example.com", "tests/1") == "https://api.example.com/tests/1"


def test_missing_base_raises():
    with pytest.raises(ConfigurationError, match="API_URL is not set"):
        build_api_url(None, "tests")
    with pytest.raises(ConfigurationError):
        build_api_url("", None)


def test_get_api_url_reads_settings(monkeypatch):
    from app.config import get_api_url, get_settings

    monkeypatch.setenv("API_URL", "http://localhost:3000/")
    get_settings.cache_clear()
    try:
        assert get_api_url("/tests") == "http://localhost:3000/tests"
    finally:
        get_settings.cache_clear()
