"""Runtime configuration read from the environment (and an optional .env)."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_BASE_URL = "https://csci571-472400.wl.r.appspot.com/"
DEFAULT_DB_PATH = Path.home() / ".eventsaround" / "events.db"

# Los Angeles, used when the device position cannot be resolved.
DEFAULT_COORDINATES = (34.0522, -118.2437)


class Settings(BaseModel):
    api_base_url: str = DEFAULT_BASE_URL
    ipinfo_url: str = "https://ipinfo.io/json"
    ipinfo_token: str | None = None
    db_path: Path = DEFAULT_DB_PATH
    timeout: float = 30.0
    max_retries: int = 3
    retry_backoff: float = 1.0
    debounce_ms: int = 300
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()
        env = os.environ
        return cls(
            api_base_url=env.get("EVENTSAROUND_API_BASE_URL", DEFAULT_BASE_URL),
            ipinfo_token=env.get("IPINFO_TOKEN") or None,
            db_path=Path(env.get("EVENTSAROUND_DB_PATH", str(DEFAULT_DB_PATH))).expanduser(),
            timeout=float(env.get("EVENTSAROUND_TIMEOUT", "30")),
            max_retries=int(env.get("EVENTSAROUND_MAX_RETRIES", "3")),
            debounce_ms=int(env.get("EVENTSAROUND_DEBOUNCE_MS", "300")),
            log_level=env.get("EVENTSAROUND_LOG_LEVEL", "WARNING"),
        )
