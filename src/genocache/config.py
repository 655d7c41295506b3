# genocache/config.py
from __future__ import annotations

import dataclasses
import logging
import os

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclasses.dataclass
class Settings:
    base_url: str = dataclasses.field(default_factory=lambda: os.getenv("GENOCACHE_BASE_URL", ""))
    timeout_s: float = dataclasses.field(default_factory=lambda: float(os.getenv("GENOCACHE_TIMEOUT_S", "20")))
    max_connections: int = dataclasses.field(default_factory=lambda: int(os.getenv("GENOCACHE_MAX_CONNECTIONS", "64")))
    http2: bool = dataclasses.field(default_factory=lambda: _env_bool("GENOCACHE_HTTP2", "false"))
    max_request_span: int = dataclasses.field(
        default_factory=lambda: int(os.getenv("GENOCACHE_MAX_REQUEST_SPAN", "50000000"))
    )
    concurrency: int = dataclasses.field(default_factory=lambda: int(os.getenv("GENOCACHE_CONCURRENCY", "8")))
    log_level: str = dataclasses.field(default_factory=lambda: os.getenv("GENOCACHE_LOG_LEVEL", "INFO"))


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.debug(
            f"genocache settings loaded: timeout_s={_settings.timeout_s}, "
            f"concurrency={_settings.concurrency}, max_request_span={_settings.max_request_span}"
        )
    return _settings


def reset_settings() -> None:
    """Forget the cached instance so the next call re-reads the environment."""
    global _settings
    _settings = None
