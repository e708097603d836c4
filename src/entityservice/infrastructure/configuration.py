"""
Configuration Management for the Entity Service

🔧 Unified Configuration System:
Settings for the entity service, supporting different environments and
deployment scenarios. Configuration can be built in code, loaded from a
JSON/YAML file or read from ``ENTITYSERVICE_*`` environment variables.
"""

import json
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class SecurityConfig:
    """Sensitive attribute hashing"""
    password_hash_iterations: int = 260000
    password_salt_bytes: int = 16


@dataclass
class PaginationConfig:
    """Page size defaults for paginated reads"""
    default_page_size: int = 25
    max_page_size: int = 100


@dataclass
class EventHubConfig:
    """Event hub configuration"""
    implementation: str = "InProcessEventHub"
    enabled: bool = True


@dataclass
class ApplicationConfig:
    """Complete entity service configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    event_hub: EventHubConfig = field(default_factory=EventHubConfig)

    # Custom configuration
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.logging.level = "WARNING"
            # hashing cost is irrelevant in tests
            config.security.password_hash_iterations = 1000

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("logging", "security", "pagination", "event_hub"):
            target = getattr(config, section)
            for key, value in (config_dict.get(section) or {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)

        config.custom.update(config_dict.get("custom") or {})
        config.validate()
        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ApplicationConfig':
        """Load configuration from a .json or .yaml file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            import yaml
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('ENTITYSERVICE_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('ENTITYSERVICE_DEBUG'):
            config.debug = os.getenv('ENTITYSERVICE_DEBUG').lower() == 'true'

        if os.getenv('ENTITYSERVICE_LOG_LEVEL'):
            config.logging.level = os.getenv('ENTITYSERVICE_LOG_LEVEL').upper()

        if os.getenv('ENTITYSERVICE_LOG_FILE'):
            config.logging.file_path = os.getenv('ENTITYSERVICE_LOG_FILE')

        if os.getenv('ENTITYSERVICE_HASH_ITERATIONS'):
            config.security.password_hash_iterations = int(os.getenv('ENTITYSERVICE_HASH_ITERATIONS'))

        if os.getenv('ENTITYSERVICE_DEFAULT_PAGE_SIZE'):
            config.pagination.default_page_size = int(os.getenv('ENTITYSERVICE_DEFAULT_PAGE_SIZE'))

        if os.getenv('ENTITYSERVICE_MAX_PAGE_SIZE'):
            config.pagination.max_page_size = int(os.getenv('ENTITYSERVICE_MAX_PAGE_SIZE'))

        if os.getenv('ENTITYSERVICE_EVENTS_ENABLED'):
            config.event_hub.enabled = os.getenv('ENTITYSERVICE_EVENTS_ENABLED').lower() == 'true'

        config.validate()
        return config

    def validate(self) -> None:
        """
        Check cross-field constraints.

        Raises:
            ValueError: If a setting is out of range
        """
        if self.pagination.default_page_size < 1:
            raise ValueError("pagination.default_page_size must be positive")
        if self.pagination.max_page_size < self.pagination.default_page_size:
            raise ValueError("pagination.max_page_size must be >= default_page_size")
        if self.security.password_hash_iterations < 1:
            raise ValueError("security.password_hash_iterations must be positive")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        def section(obj) -> Dict[str, Any]:
            return {f.name: getattr(obj, f.name) for f in fields(obj)}

        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "logging": section(self.logging),
            "security": section(self.security),
            "pagination": section(self.pagination),
            "event_hub": section(self.event_hub),
            "custom": dict(self.custom),
        }


# Global configuration instance
_global_config: Optional[ApplicationConfig] = None


def get_config() -> ApplicationConfig:
    """Get global application configuration"""
    global _global_config
    if _global_config is None:
        _global_config = ApplicationConfig.from_environment()
    return _global_config


def set_config(config: Optional[ApplicationConfig]):
    """Set global application configuration (None resets it)"""
    global _global_config
    _global_config = config
