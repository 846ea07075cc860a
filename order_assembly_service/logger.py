"""Logger module for logging messages."""

from logging_utils import get_component_logger, setup_service_logger

from .settings import Settings

_settings = Settings.from_env()

logger = setup_service_logger(
    _settings.service_name,
    log_level=_settings.log_level,
    log_file=_settings.log_file,
    json_logs=_settings.log_json,
)

# Component loggers share the sinks configured above
catalog_logger = get_component_logger(_settings.service_name, "catalog")
kafka_logger = get_component_logger(_settings.service_name, "kafka")

__all__ = ["logger", "catalog_logger", "kafka_logger"]
