"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real project or database
os.environ.setdefault("SUPABASE_URL", "https://abcd.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")
