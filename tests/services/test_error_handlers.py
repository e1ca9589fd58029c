"""
Tests for the application-wide exception handlers.
"""
import json

import pytest
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from fyphub.core.errors import integrity_error_handler


def make_request() -> Request:
    return Request(
        {
            "type": "http",
            "method": "PATCH",
            "path": "/api/users/me",
            "query_string": b"",
            "headers": [],
            "scheme": "http",
            "server": ("test", 80),
        }
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        "UNIQUE constraint failed: users.email",
        'duplicate key value violates unique constraint "ix_users_email"',
    ],
)
async def test_unique_violation_is_conflict(message):
    """Test that uniqueness collisions from SQLite and PostgreSQL map to 409."""
    exc = IntegrityError("INSERT INTO users ...", {}, Exception(message))

    response = await integrity_error_handler(make_request(), exc)

    assert response.status_code == 409
    assert json.loads(response.body) == {"detail": "Resource already exists"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        "NOT NULL constraint failed: users.first_name",
        "FOREIGN KEY constraint failed",
    ],
)
async def test_other_integrity_errors_are_bad_request(message):
    """Test that non-uniqueness integrity errors are not reported as conflicts."""
    exc = IntegrityError("UPDATE users ...", {}, Exception(message))

    response = await integrity_error_handler(make_request(), exc)

    assert response.status_code == 400
    assert json.loads(response.body) == {"detail": "Invalid input"}
