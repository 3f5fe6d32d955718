"""
Name: Worker Process Tests

Responsibilities:
  - Validate consumer selection by concurrency (single Worker vs WorkerPool)
  - Validate fail-fast when Redis is not configured
"""

from unittest.mock import MagicMock, patch

import pytest

from compliance_backend.crosscutting.config import Settings
from compliance_backend.worker import worker


pytestmark = pytest.mark.unit


def test_single_consumer_runs_in_process():
    queue, connection = MagicMock(), MagicMock()

    with patch.object(worker, "Worker") as worker_cls, patch.object(
        worker, "WorkerPool"
    ) as pool_cls:
        worker.run_consumers(queue, connection, 1)

    worker_cls.assert_called_once_with([queue], connection=connection)
    worker_cls.return_value.work.assert_called_once_with(with_scheduler=False)
    pool_cls.assert_not_called()


def test_concurrency_above_one_uses_worker_pool():
    queue, connection = MagicMock(), MagicMock()

    with patch.object(worker, "Worker") as worker_cls, patch.object(
        worker, "WorkerPool"
    ) as pool_cls:
        worker.run_consumers(queue, connection, 3)

    pool_cls.assert_called_once_with([queue], connection=connection, num_workers=3)
    pool_cls.return_value.start.assert_called_once_with()
    worker_cls.assert_not_called()


def test_main_requires_redis_url():
    settings = Settings(_env_file=None, app_env="test", fake_llm=True, redis_url="")

    with patch.object(worker, "get_settings", return_value=settings):
        with pytest.raises(SystemExit):
            worker.main()
