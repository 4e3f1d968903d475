"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real record store or database
os.environ.setdefault("RECORD_STORE_URL", "https://store.test")
os.environ.setdefault("RECORD_STORE_TOKEN", "test-token")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("SCHEDULER_ENABLED", "false")
