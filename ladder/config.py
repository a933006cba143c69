# ladder/config.py

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ladder.baseline import BaselineStrategy

DEFAULT_DB_PATH = "data/ladder.db"
DEFAULT_TIMEOUT_SECONDS = 20.0
RECENT_MATCH_LIMIT = 5

_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass
class LadderConfig:
    api_url: str = ""
    db_path: str = DEFAULT_DB_PATH
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    baseline_strategy: BaselineStrategy = BaselineStrategy.CALENDAR_DAY
    # Rejected submissions are queued like network failures unless disabled.
    queue_rejected: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LadderConfig":
        env = os.environ if environ is None else environ
        timeout_raw = env.get("LADDER_TIMEOUT_SECONDS", "")
        try:
            timeout = float(timeout_raw) if timeout_raw.strip() else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise ValueError(f"LADDER_TIMEOUT_SECONDS must be a number, got '{timeout_raw}'")

        strategy_raw = env.get("LADDER_BASELINE_STRATEGY", "").strip()
        strategy = BaselineStrategy.parse(strategy_raw) if strategy_raw else BaselineStrategy.CALENDAR_DAY

        return cls(
            api_url=env.get("LADDER_API_URL", "").strip(),
            db_path=env.get("LADDER_DB_PATH", "").strip() or DEFAULT_DB_PATH,
            timeout_seconds=timeout,
            baseline_strategy=strategy,
            queue_rejected=env.get("LADDER_QUEUE_REJECTED", "true").strip().lower() not in _FALSE_STRINGS,
        )
