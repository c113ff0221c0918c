"""
Cafeteria client - configuration
Defines all configuration parameters for the cache, network and recovery layers.
"""

from dataclasses import dataclass, field
from typing import Optional
import os
from pathlib import Path


def _default_cache_directory() -> str:
    return str(Path.home() / ".cache" / "cafeteria_client")


@dataclass
class CacheConfig:
    """Cache configuration"""
    directory: str = field(default_factory=_default_cache_directory)
    memory_max_entries: int = 100
    memory_max_bytes: int = 50 * 1024 * 1024  # 50MB
    cleanup_interval: float = 60.0
    # 0 disables the disk size cap
    disk_max_bytes: int = 0


@dataclass
class NetworkConfig:
    """Network configuration"""
    default_timeout: float = 30.0
    user_agent: str = "cafeteria-client/1.0"

    # Connectivity probe
    probe_host: str = "1.1.1.1"
    probe_port: int = 443
    probe_timeout: float = 3.0
    monitor_interval: float = 10.0


@dataclass
class RecoveryConfig:
    """Recovery strategy configuration"""
    network_base_delay: float = 2.0
    ai_base_delay: float = 5.0
    data_delay: float = 1.0
    probe_timeout: float = 3.0


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "standard"  # "structured" or "standard"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class Config:
    """Main configuration"""
    cache: CacheConfig = field(default_factory=CacheConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    recovery: RecoveryConfig = field(default_factory=RecoveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load_from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()

        # Cache
        config.cache.directory = os.getenv("CAFETERIA_CACHE_DIR", config.cache.directory)
        config.cache.memory_max_entries = int(os.getenv("CAFETERIA_CACHE_MAX_ENTRIES",
                                                        str(config.cache.memory_max_entries)))
        config.cache.memory_max_bytes = int(os.getenv("CAFETERIA_CACHE_MAX_BYTES",
                                                      str(config.cache.memory_max_bytes)))
        config.cache.cleanup_interval = float(os.getenv("CAFETERIA_CACHE_CLEANUP_INTERVAL",
                                                        str(config.cache.cleanup_interval)))
        config.cache.disk_max_bytes = int(os.getenv("CAFETERIA_CACHE_DISK_MAX_BYTES",
                                                    str(config.cache.disk_max_bytes)))

        # Network
        config.network.default_timeout = float(os.getenv("CAFETERIA_HTTP_TIMEOUT",
                                                         str(config.network.default_timeout)))
        config.network.probe_host = os.getenv("CAFETERIA_PROBE_HOST", config.network.probe_host)
        config.network.probe_port = int(os.getenv("CAFETERIA_PROBE_PORT", str(config.network.probe_port)))
        config.network.probe_timeout = float(os.getenv("CAFETERIA_PROBE_TIMEOUT",
                                                       str(config.network.probe_timeout)))
        config.network.monitor_interval = float(os.getenv("CAFETERIA_MONITOR_INTERVAL",
                                                          str(config.network.monitor_interval)))

        # Recovery
        config.recovery.network_base_delay = float(os.getenv("CAFETERIA_NETWORK_RETRY_DELAY",
                                                             str(config.recovery.network_base_delay)))
        config.recovery.ai_base_delay = float(os.getenv("CAFETERIA_AI_RETRY_DELAY",
                                                        str(config.recovery.ai_base_delay)))
        config.recovery.data_delay = float(os.getenv("CAFETERIA_DATA_RETRY_DELAY",
                                                     str(config.recovery.data_delay)))
        config.recovery.probe_timeout = float(os.getenv("CAFETERIA_RECOVERY_PROBE_TIMEOUT",
                                                        str(config.recovery.probe_timeout)))

        # Logging
        config.logging.level = os.getenv("CAFETERIA_LOG_LEVEL", config.logging.level).upper()
        config.logging.format = os.getenv("CAFETERIA_LOG_FORMAT", config.logging.format)
        config.logging.file_path = os.getenv("CAFETERIA_LOG_FILE", config.logging.file_path)

        return config
