from __future__ import annotations

import logging

from app.core.logging import POLL_PATHS, _PollPathFilter


def _access_record(path: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='%s - "%s %s HTTP/%s" %d',
        args=("127.0.0.1:50000", "GET", path, "1.1", 200),
        exc_info=None,
    )


def test_poll_paths_are_dropped() -> None:
    log_filter = _PollPathFilter(POLL_PATHS)

    assert log_filter.filter(_access_record("/nodeConditions")) is False
    assert log_filter.filter(_access_record("/capacity?x=1")) is False


def test_pod_operations_are_kept() -> None:
    log_filter = _PollPathFilter(POLL_PATHS)

    assert log_filter.filter(_access_record("/createPod")) is True
    assert log_filter.filter(_access_record("/getPodStatus?namespace=default&name=web")) is True
