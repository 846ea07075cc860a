"""Tests for the shared logging configuration."""

from logging_utils import get_component_logger, mask_secret, setup_service_logger


def test_mask_secret():
    assert mask_secret("sk-test-valid-key-123456789") == "*" * 23 + "6789"
    assert mask_secret("abc") == "***"
    assert mask_secret(None) == "<none>"
    assert mask_secret("") == "<none>"


def test_file_sink_records_service_and_component(tmp_path):
    log_file = tmp_path / "service.log"

    try:
        setup_service_logger("order-assembly-test", log_level="DEBUG", log_file=str(log_file))
        get_component_logger("order-assembly-test", "catalog").info("catalog lookup done")
    finally:
        # Removing the sinks flushes and closes the file
        setup_service_logger("order-assembly-service")

    content = log_file.read_text()
    assert "order-assembly-test" in content
    assert "catalog lookup done" in content


def test_json_file_sink(tmp_path):
    log_file = tmp_path / "service.json"

    try:
        setup_service_logger("order-assembly-test", log_file=str(log_file), json_logs=True)
        get_component_logger("order-assembly-test", "kafka").warning("delivery slow")
    finally:
        setup_service_logger("order-assembly-service")

    content = log_file.read_text()
    assert '"component": "kafka"' in content
    assert "delivery slow" in content
