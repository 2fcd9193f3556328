"""
Configuration management for the Value Ledger service.

Defaults live in dataclasses, an optional JSON file can override them and
environment variables override both.
"""

import json
import os
import secrets
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict
import logging
import sys

# List of known weak/default JWT secrets that should be rejected
WEAK_JWT_SECRETS = {
    "your-secret-key-change-in-production",
    "secret",
    "key",
    "password",
    "jwt-secret",
    "secret-key",
    "change-me",
    "default",
    "test",
    "development",
    "dev",
    "demo",
    "example",
    "sample",
}


def _env_flag(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Read a boolean environment flag ("1"/"true"/"yes" are truthy)."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _validate_jwt_secret_key(jwt_secret_key: str) -> None:
    """Validate JWT secret key security and reject weak/default keys.

    Args:
        jwt_secret_key: The JWT secret key to validate

    Raises:
        SystemExit: If the secret key is weak, default, or insecure
    """
    if not jwt_secret_key:
        logging.critical(
            "JWT secret key is empty - this is a critical security vulnerability"
        )
        sys.exit(1)

    if len(jwt_secret_key) < 32:
        logging.critical(
            f"JWT secret key is too short ({len(jwt_secret_key)} chars). "
            f"Minimum 32 characters required for security."
        )
        sys.exit(1)

    if jwt_secret_key.lower() in WEAK_JWT_SECRETS:
        logging.critical(
            f"JWT secret key '{jwt_secret_key}' is a known weak/default secret. "
            f"Set VALUE_LEDGER_JWT_SECRET_KEY environment variable with a secure key."
        )
        sys.exit(1)

    unique_chars = len(set(jwt_secret_key))
    if unique_chars < 8:
        logging.critical(
            f"JWT secret key has insufficient entropy ({unique_chars} unique characters). "
            f"Use a cryptographically secure random key."
        )
        sys.exit(1)

    logging.debug(
        f"JWT secret key validation passed ({len(jwt_secret_key)} chars, {unique_chars} unique)"
    )


@dataclass
class DatabaseConfig:
    """Database configuration."""

    url: str = "sqlite:///value_ledger.db"
    echo: bool = False
    log_queries: bool = False  # Enable query logging for performance analysis


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    allowed_origins: Optional[List[str]] = None


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "Value Ledger"
    description: str = "Peer-recognition value tokens for coaching cohorts"

    # JWT verification - sessions are issued by the identity provider
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    jwt_access_token_expires_minutes: int = 60

    # Token game tunables
    default_token_amount: int = 10_000
    level_unit: int = 1_000_000  # Cumulative amount per level
    leaderboard_size: int = 8
    recent_activity_size: int = 5

    # Rename cascade retry policy
    cascade_retry_attempts: int = 3
    cascade_retry_base_delay: float = 0.05
    cascade_retry_max_delay: float = 1.0

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"

    # Environment
    is_development: bool = False


@dataclass
class ValueLedgerConfig:
    """Complete configuration for the Value Ledger service."""

    app: AppConfig
    server: ServerConfig
    database: DatabaseConfig

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": asdict(self.app),
            "server": asdict(self.server),
            "database": asdict(self.database),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValueLedgerConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(**data.get("database", {})),
        )


class ConfigManager:
    """Manages configuration loading and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[ValueLedgerConfig] = None

    def detect_environment(self) -> Dict[str, Any]:
        """Collect environment overrides."""
        env_info: Dict[str, Any] = {}

        env_info["database_url"] = os.getenv("VALUE_LEDGER_DATABASE_URL") or os.getenv(
            "DATABASE_URL"
        )
        env_info["jwt_secret_key"] = os.getenv("VALUE_LEDGER_JWT_SECRET_KEY")
        env_info["debug"] = _env_flag("VALUE_LEDGER_DEBUG")
        env_info["log_to_file"] = _env_flag("VALUE_LEDGER_LOG_TO_FILE")
        env_info["log_dir"] = os.getenv("VALUE_LEDGER_LOG_DIR")
        env_info["is_development"] = _env_flag("VALUE_LEDGER_DEV", False)

        return env_info

    def get_config_file_path(self) -> Optional[Path]:
        """Get the path for the config file, if one is configured."""
        config_path = os.getenv("VALUE_LEDGER_CONFIG_FILE")
        if config_path:
            return Path(config_path).expanduser()

        default_path = Path.cwd() / "data" / "config.json"
        return default_path if default_path.exists() else None

    def _apply_environment(self, config: ValueLedgerConfig) -> ValueLedgerConfig:
        """Apply environment overrides on top of file/default values."""
        env_info = self.detect_environment()

        if env_info["database_url"]:
            config.database.url = env_info["database_url"]
        if env_info["debug"] is not None:
            config.server.debug = env_info["debug"]
            config.app.log_level = "DEBUG" if env_info["debug"] else config.app.log_level
        if env_info["log_to_file"] is not None:
            config.app.log_to_file = env_info["log_to_file"]
        if env_info["log_dir"]:
            config.app.log_dir = env_info["log_dir"]
        config.app.is_development = bool(env_info["is_development"])

        if env_info["jwt_secret_key"]:
            config.app.jwt_secret_key = env_info["jwt_secret_key"]
            logging.info(
                "Using JWT secret key from VALUE_LEDGER_JWT_SECRET_KEY environment variable"
            )
        elif not config.app.jwt_secret_key:
            # Tokens minted before a restart become invalid with a generated key
            config.app.jwt_secret_key = secrets.token_urlsafe(64)
            logging.info("Generated new JWT secret key (not from environment)")

        return config

    def load_config(self) -> ValueLedgerConfig:
        """Load configuration from file (if any) and the environment."""
        if self.config is not None:
            return self.config

        self.config_file = self.get_config_file_path()
        data: Dict[str, Any] = {}

        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                logging.info(f"Loaded configuration from {self.config_file}")
            except (OSError, ValueError) as e:
                logging.warning(f"Failed to load config from {self.config_file}: {e}")
                data = {}

        try:
            config = ValueLedgerConfig.from_dict(data)
        except TypeError as e:
            logging.warning(f"Ignoring invalid configuration values: {e}")
            config = ValueLedgerConfig.from_dict({})

        self.config = self._apply_environment(config)
        return self.config

    def reload_config(self) -> ValueLedgerConfig:
        """Discard the cached configuration and load it again."""
        self.config = None
        return self.load_config()

    def save_config(self, config: Optional[ValueLedgerConfig] = None) -> bool:
        """Save configuration to the configured file."""
        if config is None:
            config = self.config

        if config is None:
            logging.error("No configuration to save")
            return False

        target = self.config_file or self.get_config_file_path()
        if target is None:
            logging.error("No configuration file path configured")
            return False

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

            logging.info(f"Saved configuration to {target}")
            return True

        except OSError as e:
            logging.error(f"Failed to save config to {target}: {e}")
            return False

    def validate_security_config(self) -> None:
        """Validate security-critical configuration at startup.

        Raises:
            SystemExit: If critical security issues are found
        """
        config = self.load_config()
        _validate_jwt_secret_key(config.app.jwt_secret_key)
        logging.info("Security configuration validation passed")


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> ValueLedgerConfig:
    """Get the current configuration."""
    return config_manager.load_config()


def reload_config() -> ValueLedgerConfig:
    """Reload configuration from file and environment."""
    return config_manager.reload_config()


def validate_startup_security() -> None:
    """Validate security configuration at application startup.

    Raises:
        SystemExit: If critical security vulnerabilities are detected
    """
    try:
        config_manager.validate_security_config()
        logging.info("Startup security validation completed successfully")
    except SystemExit:
        raise
    except Exception as e:
        logging.critical(f"Unexpected error during security validation: {e}")
        sys.exit(1)
