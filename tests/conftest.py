"""Root conftest — shared test configuration."""

import os

# Ensure tests never touch a real database or preload stores
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ITEMS_LOAD_ON_STARTUP", "false")
os.environ.setdefault("LOG_FORMAT", "text")
