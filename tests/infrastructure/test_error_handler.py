from __future__ import annotations

import logging
from unittest.mock import Mock

from iFiles.errors import InvariantViolationError, NodeSourceError, StaleResponseError
from iFiles.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity


def test_handle_logs_and_publishes(event_bus, caplog):
    received = []
    event_bus.subscribe(ErrorOccurredEvent, received.append)
    handler = ErrorHandler(logging.getLogger("iFiles.test"), event_bus)
    with caplog.at_level(logging.WARNING, logger="iFiles.test"):
        handler.handle(StaleResponseError("late page"), ErrorSeverity.WARNING, {"window": "root"})
    assert "StaleResponseError: late page" in caplog.text
    (event,) = received
    assert event.severity is ErrorSeverity.WARNING
    assert event.context == {"window": "root"}


def test_ui_callback_only_for_serious_errors(event_bus):
    callback = Mock()
    handler = ErrorHandler(logging.getLogger("iFiles.test"), event_bus)
    handler.register_ui_callback(callback)
    handler.handle(StaleResponseError("late"), ErrorSeverity.INFO)
    callback.assert_not_called()
    handler.handle(NodeSourceError("offline"))
    handler.handle(InvariantViolationError("bad"), ErrorSeverity.CRITICAL)
    assert [c.args[1] for c in callback.call_args_list] == [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]
