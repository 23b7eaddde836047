"""Root conftest — shared test configuration."""

import os

# Valid Fernet key (urlsafe base64 of 32 bytes); never used outside tests
TEST_SECURE_STORE_KEY = "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY="

os.environ.setdefault("SECURE_STORE_KEY", TEST_SECURE_STORE_KEY)
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
