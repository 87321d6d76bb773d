"""Shared fixtures for inventory service tests."""

import os

# AuthSettings requires a token secret. Set a test default before any
# AuthSettings is instantiated.
os.environ.setdefault("AUTH_TOKEN_SECRET", "test-secret")
