import json
import logging

from option_strategy_engine.utils.logging import JSONFormatter, _ContextFilter, get_logger


def _record(**extra):
    record = logging.LogRecord("ose.test", logging.INFO, __file__, 1, "priced %s", ("call",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context_fields():
    payload = json.loads(JSONFormatter().format(_record(component="pricing", option_type="call", ignored="x")))
    assert payload["message"] == "priced call"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "ose.test"
    assert payload["component"] == "pricing"
    assert payload["option_type"] == "call"
    assert "ignored" not in payload
    assert payload["timestamp"].endswith("Z")


def test_get_logger_adds_component_filter_once():
    logger = get_logger("ose.test.filters", component="strategies")
    get_logger("ose.test.filters", component="strategies")
    filters = [f for f in logger.filters if isinstance(f, _ContextFilter)]
    assert len(filters) == 1

    record = _record()
    assert filters[0].filter(record)
    assert record.component == "strategies"

    tagged = _record(component="cli")
    filters[0].filter(tagged)
    assert tagged.component == "cli"
