import json
import logging

import pytest

from creditfeatures.config import LoggingConfig
from creditfeatures.observability.logging import (
    GLOBAL_LOG_TAGS,
    JsonFormatter,
    configure_context,
    configure_logging,
)


def test_json_formatter_includes_stage_and_context():
    configure_context(run_mode="fit")
    try:
        record = logging.LogRecord("creditfeatures.test", logging.INFO, __file__, 1, "rows=%d", (3,), None)
        record.stage = "add_binned_features"
        payload = json.loads(JsonFormatter().format(record))
    finally:
        GLOBAL_LOG_TAGS.clear()

    assert payload["message"] == "rows=3"
    assert payload["stage"] == "add_binned_features"
    assert payload["run_mode"] == "fit"
    assert payload["level"] == "INFO"


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError, match="bogus"):
        configure_logging(LoggingConfig(level="bogus"))
