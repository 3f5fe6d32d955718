"""
Name: DB Pool Lifecycle Tests

Responsibilities:
  - Validate fail-fast init / get semantics
  - Validate a forked child process gets its own pool
"""

from unittest.mock import MagicMock, patch

import pytest

from compliance_backend.infrastructure.db import pool as db_pool
from compliance_backend.infrastructure.db.errors import (
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _fresh_pool():
    db_pool.close_pool()
    with patch.object(db_pool, "ConnectionPool", side_effect=lambda **_: MagicMock()):
        yield
    db_pool.close_pool()


def test_get_pool_before_init_fails():
    with pytest.raises(PoolNotInitializedError):
        db_pool.get_pool()


def test_double_init_in_same_process_fails():
    db_pool.init_pool("postgresql://x/db", 1, 2)

    with pytest.raises(PoolAlreadyInitializedError):
        db_pool.init_pool("postgresql://x/db", 1, 2)


def test_get_pool_returns_process_pool():
    created = db_pool.init_pool("postgresql://x/db", 1, 2)

    assert db_pool.get_pool() is created


def test_forked_child_reopens_pool():
    parent_pool = db_pool.init_pool("postgresql://x/db", 1, 2)

    with patch.object(db_pool.os, "getpid", return_value=-1):
        child_pool = db_pool.get_pool()
        assert db_pool.get_pool() is child_pool

    assert child_pool is not parent_pool
    parent_pool.close.assert_not_called()


def test_close_pool_closes_owned_pool():
    created = db_pool.init_pool("postgresql://x/db", 1, 2)

    db_pool.close_pool()

    created.close.assert_called_once_with()
    with pytest.raises(PoolNotInitializedError):
        db_pool.get_pool()
