import logging
import logging.handlers
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Contact QR"

    # Storage
    contacts_file: str = "data/contacts.json"
    kv_url: str = ""
    kv_rest_api_url: str = ""
    kv_rest_api_token: str = ""
    kv_prefix: str = "contacts:"

    # vCard / QR
    vcard_cache_seconds: int = 3600
    qr_box_size: int = 12
    qr_border: int = 1

    # HTTP
    cors_origins: str = "*"
    trusted_hosts: str = "*"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10 MB
    log_backup_count: int = 5

    model_config = {"env_file": ".env"}

    @property
    def uses_rest_kv(self) -> bool:
        return bool(self.kv_rest_api_url and self.kv_rest_api_token)

    @property
    def uses_hosted_kv(self) -> bool:
        """True when either a redis URL or the REST endpoint + token pair is configured."""
        return bool(self.kv_url) or self.uses_rest_kv

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def trusted_hosts_list(self) -> list[str]:
        return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]


settings = Settings()

_QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "redis", "upstash_redis", "PIL")


def _rotating(path: Path, level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logging() -> None:
    """Route the contact service's logs to stdout and two rotating files under LOG_DIR.

    stdout gets INFO+ one-liners; app.log keeps everything with call sites,
    error.log only the store and rendering failures (ERROR+).
    """
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S"))
    root.addHandler(console)

    detailed = logging.Formatter(
        "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root.addHandler(_rotating(log_dir / "app.log", logging.DEBUG, detailed))
    root.addHandler(_rotating(log_dir / "error.log", logging.ERROR, detailed))

    # Client libraries log every request at INFO/DEBUG.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, dir=%s, rotate at %d MB, keep %d",
        settings.log_level, log_dir, settings.log_max_bytes // 1_048_576, settings.log_backup_count,
    )
