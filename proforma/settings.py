from __future__ import annotations
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

ROOT_DIR = Path.cwd()


def _env(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


class Settings(BaseModel):
    app_name: str = "Proforma"
    api_url: str = Field(default_factory=lambda: _env("PROFORMA_API_URL", "http://localhost:3000/api"))
    api_timeout: float = Field(default_factory=lambda: float(_env("PROFORMA_API_TIMEOUT", "30")))
    data_dir: Path = Field(default_factory=lambda: Path(_env("PROFORMA_DATA_DIR", str(ROOT_DIR / "data"))))
    exports_dir: Path = Field(default_factory=lambda: Path(_env("PROFORMA_EXPORTS_DIR", str(ROOT_DIR / "exports"))))
    default_currency: str = Field(default_factory=lambda: _env("PROFORMA_DEFAULT_CURRENCY", "BOB"))
    log_level: str = Field(default_factory=lambda: _env("LOG_LEVEL", "INFO").upper())

    @property
    def session_path(self) -> Path:
        return self.data_dir / "session.json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
