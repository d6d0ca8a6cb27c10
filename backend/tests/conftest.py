"""Root conftest: shared test configuration."""

import base64
import os

# Ensure tests never pick up a real signing key or database
os.environ.setdefault(
    "SIGNING_KEY",
    base64.b64encode(b"politeshop-test-signing-key-0001").decode(),
)
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
