# tests/test_config.py

import pytest

from ladder.baseline import BaselineStrategy
from ladder.config import DEFAULT_DB_PATH, LadderConfig


def test_defaults():
    config = LadderConfig.from_env({})
    assert config.api_url == ""
    assert config.db_path == DEFAULT_DB_PATH
    assert config.timeout_seconds == 20.0
    assert config.baseline_strategy is BaselineStrategy.CALENDAR_DAY
    assert config.queue_rejected is True


def test_environment_overrides():
    config = LadderConfig.from_env({
        "LADDER_API_URL": " https://example.com/exec ",
        "LADDER_DB_PATH": "/tmp/ladder.db",
        "LADDER_TIMEOUT_SECONDS": "5",
        "LADDER_BASELINE_STRATEGY": "session",
        "LADDER_QUEUE_REJECTED": "false",
    })
    assert config.api_url == "https://example.com/exec"
    assert config.db_path == "/tmp/ladder.db"
    assert config.timeout_seconds == 5.0
    assert config.baseline_strategy is BaselineStrategy.SESSION
    assert config.queue_rejected is False


def test_bad_timeout():
    with pytest.raises(ValueError):
        LadderConfig.from_env({"LADDER_TIMEOUT_SECONDS": "soon"})


def test_bad_strategy():
    with pytest.raises(ValueError):
        LadderConfig.from_env({"LADDER_BASELINE_STRATEGY": "hourly"})
