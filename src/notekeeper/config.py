"""Client configuration loaded from the environment."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


def default_data_dir() -> Path:
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home()))
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return base / "notekeeper"


class Settings(BaseSettings):
    """Root client settings."""

    model_config = {"env_prefix": "NOTEKEEPER_"}

    api_base_url: str = "http://localhost:8000"
    share_origin: str = "http://localhost:5173"
    data_dir: Path = Field(default_factory=default_data_dir)
    store_path: Optional[Path] = None
    store_secret: Optional[str] = None
    timeout_seconds: float = 10.0
    log_level: str = "WARNING"

    def credential_path(self) -> Path:
        """Where the bearer credential is persisted."""
        return self.store_path or self.data_dir / "credential.nk"
