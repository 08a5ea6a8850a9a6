import json
import logging

from utils.logging_utils import JsonFormatter


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("middleware.logging", logging.INFO, __file__, 1, "incoming message", None, None)
    record.chat_id = -1001
    record.chat_type = "group"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "incoming message"
    assert payload["level"] == "INFO"
    assert payload["chat_id"] == -1001
    assert payload["chat_type"] == "group"
    assert payload["timestamp"].endswith("+00:00")
