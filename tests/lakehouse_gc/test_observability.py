from __future__ import annotations

import logging

from lakehouse_gc.observability import log_event

logger = logging.getLogger("tests.observability")


def test_log_event_appends_non_empty_fields(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "gc.delete_multiple", base="s3://bucket/p/", deleted=3, failures=0, note=" ")

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["gc.delete_multiple base=s3://bucket/p/ deleted=3 failures=0"]


def test_log_event_respects_level(caplog) -> None:
    caplog.set_level(logging.INFO)

    log_event(logger, "gc.backend.initialized", level=logging.DEBUG, backend="s3")
    log_event(logger, "gc.router.closed")

    assert [r.getMessage() for r in caplog.records] == ["gc.router.closed"]
    assert caplog.records[0].levelno == logging.INFO
