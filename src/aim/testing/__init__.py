"""Test utilities for aim applications.

    from aim.testing import TestClient

    async with TestClient(app) as client:
        response = await client.get("/ping")
        assert response.is_ok
"""

from aim.testing.client import TestClient, TestResponse

__all__ = [
    "TestClient",
    "TestResponse",
]
