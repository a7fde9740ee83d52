"""
Application settings.

Values come from the environment (a .env file in the working directory is
loaded first when present) and fall back to the defaults below.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass
class Settings:
    """
    Application settings.

    Attributes:
        db_path: Path to SQLite database file (":memory:" for tests)
        log_level: Root log level name for the CLI
        lock_timeout_seconds: How long a command waits for a busy trade;
            None waits forever
    """
    db_path: Path = Path("var/barterhub.db")
    log_level: str = "WARNING"
    lock_timeout_seconds: Optional[float] = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        defaults = cls()
        timeout_raw = os.environ.get("BARTERHUB_LOCK_TIMEOUT")
        if timeout_raw is None or timeout_raw == "":
            timeout = defaults.lock_timeout_seconds
        elif timeout_raw.lower() in ("none", "off"):
            timeout = None
        else:
            timeout = float(timeout_raw)

        return cls(
            db_path=Path(os.environ.get("BARTERHUB_DB_PATH", str(defaults.db_path))),
            log_level=os.environ.get("BARTERHUB_LOG_LEVEL", defaults.log_level).upper(),
            lock_timeout_seconds=timeout,
        )


# Global settings instance
settings = Settings.from_env()
