import json
import logging

from cafeteria_client.config import Config, LoggingConfig
from cafeteria_client.logging_config import (
    LogCategory,
    LogSink,
    PlainFormatter,
    StructuredFormatter,
    setup_logging,
)


def test_defaults():
    config = Config()
    assert config.cache.memory_max_entries == 100
    assert config.cache.memory_max_bytes == 50 * 1024 * 1024
    assert config.network.default_timeout == 30.0
    assert config.network.probe_timeout == 3.0
    assert config.recovery.network_base_delay == 2.0
    assert config.recovery.ai_base_delay == 5.0
    assert config.logging.level == "INFO"


def test_load_from_env(monkeypatch, tmp_path):
    """测试从环境变量加载配置"""
    monkeypatch.setenv("CAFETERIA_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("CAFETERIA_CACHE_MAX_ENTRIES", "10")
    monkeypatch.setenv("CAFETERIA_HTTP_TIMEOUT", "12.5")
    monkeypatch.setenv("CAFETERIA_PROBE_HOST", "8.8.8.8")
    monkeypatch.setenv("CAFETERIA_PROBE_PORT", "53")
    monkeypatch.setenv("CAFETERIA_NETWORK_RETRY_DELAY", "0.5")
    monkeypatch.setenv("CAFETERIA_LOG_LEVEL", "debug")

    config = Config.load_from_env()

    assert config.cache.directory == str(tmp_path)
    assert config.cache.memory_max_entries == 10
    assert config.network.default_timeout == 12.5
    assert config.network.probe_host == "8.8.8.8"
    assert config.network.probe_port == 53
    assert config.recovery.network_base_delay == 0.5
    assert config.logging.level == "DEBUG"


def test_configs_are_independent():
    first, second = Config(), Config()
    first.cache.memory_max_entries = 1
    assert second.cache.memory_max_entries == 100


def test_setup_logging_with_rotating_file(tmp_path):
    log_file = tmp_path / "client.log"
    logger = setup_logging(LoggingConfig(level="DEBUG", format="structured", file_path=str(log_file)))

    LogSink().info("Cache cleared", LogCategory.CACHE, disk_files_removed=3)
    for handler in logger.handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["message"] == "Cache cleared"
    assert record["logger"] == "cafeteria_client.cache"
    assert record["category"] == "cache"
    assert record["metadata"] == {"disk_files_removed": 3}


def test_structured_formatter_includes_exception():
    try:
        raise ValueError("bad value")
    except ValueError as e:
        record = logging.LogRecord("cafeteria_client.data", logging.ERROR, __file__, 1,
                                   "failed", None, (type(e), e, e.__traceback__))

    data = json.loads(StructuredFormatter().format(record))
    assert data["level"] == "ERROR"
    assert data["exception"]["type"] == "ValueError"
    assert data["exception"]["message"] == "bad value"


def test_log_sink_respects_level(caplog):
    sink = LogSink()
    with caplog.at_level(logging.WARNING, logger="cafeteria_client"):
        sink.debug("hidden", LogCategory.NETWORK)
        sink.warning("shown", LogCategory.NETWORK, url="https://api.example.com")

    assert [r.getMessage() for r in caplog.records] == ["shown"]
    assert caplog.records[0].category == "network"


def test_recovery_settings_from_env(monkeypatch):
    monkeypatch.setenv("CAFETERIA_DATA_RETRY_DELAY", "0.25")
    monkeypatch.setenv("CAFETERIA_RECOVERY_PROBE_TIMEOUT", "1.5")

    config = Config.load_from_env()

    assert config.recovery.data_delay == 0.25
    assert config.recovery.probe_timeout == 1.5


def test_plain_format_renders_metadata():
    formatter = PlainFormatter("%(levelname)s - %(message)s")
    record = logging.LogRecord("cafeteria_client.network", logging.DEBUG, __file__, 1,
                               "Response received", None, None)
    record.metadata = {"url": "https://api.example.com/menus", "status_code": 200}

    assert formatter.format(record) == (
        "DEBUG - Response received | url=https://api.example.com/menus status_code=200"
    )


def test_plain_format_without_metadata():
    formatter = PlainFormatter("%(message)s")
    record = logging.LogRecord("cafeteria_client", logging.INFO, __file__, 1, "started", None, None)
    assert formatter.format(record) == "started"
