import os
import logging
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite://"))
    seed_demo_data: bool = field(default_factory=lambda: _env_bool("HELPDESK_SEED_DEMO", "true"))
    enable_mcp: bool = field(default_factory=lambda: _env_bool("HELPDESK_ENABLE_MCP", "true"))

    # Broadcast hub: messages queued per connection before new ones are dropped
    ws_send_queue_size: int = field(default_factory=lambda: int(os.getenv("WS_SEND_QUEUE_SIZE", "100")))

    # Client update listener
    api_url: str = field(default_factory=lambda: os.getenv("HELPDESK_API_URL", "http://localhost:8000"))
    reconnect_delay_seconds: float = field(
        default_factory=lambda: float(os.getenv("WS_RECONNECT_DELAY_SECONDS", "3"))
    )
    max_reconnect_attempts: int = field(default_factory=lambda: int(os.getenv("WS_MAX_RECONNECT_ATTEMPTS", "5")))
    connect_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("WS_CONNECT_TIMEOUT_SECONDS", "10"))
    )

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def ws_url(self) -> str:
        base = self.api_url.rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):] + "/ws"
        if base.startswith("http://"):
            return "ws://" + base[len("http://"):] + "/ws"
        return base + "/ws"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
