"""Runtime configuration read from the environment."""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from . import SERVICE_NAME


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Service settings.

    Attributes:
        service_name (str): Name reported by the health probe and bound to every log record.
        host (str): Interface uvicorn binds to.
        port (int): Port uvicorn listens on.
        log_level (str): Minimum log level.
        log_file (str | None): Optional rotating log file.
        log_json (bool): Serialize log records as JSON.
        catalog_base_url (str): Base URL of the card catalog service.
        catalog_timeout (float): Per-lookup timeout in seconds.
        catalog_max_concurrency (int): Maximum SKU lookups in flight for one order.
        kafka_bootstrap_servers (str): Comma-separated list of Kafka brokers.
        queue_topic (str): Topic receiving assembled orders.
        publish_timeout (float): Seconds to wait for a delivery report.
        api_keys_file (str | None): JSON file holding the credential table.
    """

    model_config = ConfigDict(frozen=True)

    service_name: str = SERVICE_NAME
    host: str = "0.0.0.0"
    port: int = Field(default=3000, gt=0, lt=65536)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False
    catalog_base_url: str = "http://localhost:8080"
    catalog_timeout: float = Field(default=5.0, gt=0)
    catalog_max_concurrency: int = Field(default=10, ge=1)
    kafka_bootstrap_servers: str = "kafka:9092"
    queue_topic: str = "assembled-orders"
    publish_timeout: float = Field(default=5.0, gt=0)
    api_keys_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            service_name=os.getenv("SERVICE_NAME", SERVICE_NAME),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_json=_env_flag("LOG_JSON"),
            catalog_base_url=os.getenv("CARD_CATALOG_URL", "http://localhost:8080"),
            catalog_timeout=float(os.getenv("CATALOG_TIMEOUT_SECONDS", "5")),
            catalog_max_concurrency=int(os.getenv("CATALOG_MAX_CONCURRENCY", "10")),
            kafka_bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092"),
            queue_topic=os.getenv("QUEUE_TOPIC", "assembled-orders"),
            publish_timeout=float(os.getenv("PUBLISH_TIMEOUT_SECONDS", "5")),
            api_keys_file=os.getenv("API_KEYS_FILE") or None,
        )
