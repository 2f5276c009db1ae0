"""Runtime configuration loaded from the environment (and `.env` if present)."""
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)
    auto_ready: bool = True
    max_pending: int = 256
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    origins = os.getenv("OVERLAY_CORS_ORIGINS", "*")
    return Settings(
        log_level=os.getenv("OVERLAY_LOG_LEVEL", "INFO").upper(),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        auto_ready=_env_bool("OVERLAY_AUTO_READY", True),
        max_pending=int(os.getenv("OVERLAY_MAX_PENDING", "256")),
        host=os.getenv("OVERLAY_HOST", "0.0.0.0"),
        port=int(os.getenv("OVERLAY_PORT", "8000")),
    )


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
