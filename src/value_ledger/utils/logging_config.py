"""
Centralized logging configuration for the Value Ledger.
Provides component-specific loggers with separate log files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from ..config import get_config


DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - "
    "%(funcName)s() - %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _to_file = True
    _debug = False

    # Component definitions with their log levels
    COMPONENTS = {
        "api": {"level": logging.INFO, "file": "api.log"},
        "ledger": {"level": logging.INFO, "file": "ledger.log"},
        "aggregation": {"level": logging.INFO, "file": "aggregation.log"},
        "auth": {"level": logging.INFO, "file": "auth.log"},
        "database": {"level": logging.INFO, "file": "database.log"},
        "main": {"level": logging.INFO, "file": "main.log"},
        "error": {"level": logging.ERROR, "file": "errors.log"},  # Centralized error log
    }

    # Module path segment -> component
    MODULE_COMPONENTS = {
        "api": "api",
        "auth": "auth",
        "db": "database",
        "repositories": "database",
        "store": "ledger",
        "domain": "aggregation",
        "main": "main",
    }

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[str] = None,
        debug: Optional[bool] = None,
        to_file: Optional[bool] = None,
    ) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components
            to_file: Write rotating log files; stderr only when False
        """
        if cls._initialized:
            return

        config = get_config()
        cls._debug = config.server.debug if debug is None else debug
        cls._to_file = config.app.log_to_file if to_file is None else to_file

        detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        simple_formatter = logging.Formatter(SIMPLE_FORMAT, datefmt="%H:%M:%S")

        session_dir = datetime.now().strftime("%Y%m%d_%H%M%S")
        if cls._to_file:
            cls._log_dir = Path(log_dir or config.app.log_dir) / session_dir
            cls._log_dir.mkdir(parents=True, exist_ok=True)

        root_level = logging.DEBUG if cls._debug else logging.INFO

        unified_handler: Optional[logging.Handler] = None
        if cls._to_file:
            unified_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / "unified.log",
                maxBytes=20 * 1024 * 1024,  # 20MB
                backupCount=3,
                encoding="utf-8",
            )
            unified_handler.setLevel(root_level)
            unified_handler.setFormatter(detailed_formatter)

        for component_name, component_config in cls.COMPONENTS.items():
            logger = logging.getLogger(f"value_ledger.{component_name}")
            logger.handlers.clear()
            logger.propagate = False

            level = logging.DEBUG if cls._debug else component_config["level"]
            logger.setLevel(level)

            if cls._to_file:
                file_handler = logging.handlers.RotatingFileHandler(
                    cls._log_dir / component_config["file"],
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5,
                    encoding="utf-8",
                )
                file_handler.setLevel(level)
                file_handler.setFormatter(detailed_formatter)
                logger.addHandler(file_handler)
                logger.addHandler(unified_handler)

                # Console handler for errors only
                if component_name in ("error", "main"):
                    console_handler = logging.StreamHandler(sys.stderr)
                    console_handler.setLevel(logging.ERROR)
                    console_handler.setFormatter(simple_formatter)
                    logger.addHandler(console_handler)
            else:
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(level)
                console_handler.setFormatter(simple_formatter)
                logger.addHandler(console_handler)

            cls._loggers[component_name] = logger

        cls._initialized = True

        main_logger = cls._loggers["main"]
        main_logger.info("Value Ledger logging initialized")
        main_logger.info(f"Session: {session_dir}")
        if cls._log_dir:
            main_logger.info(f"Log directory: {cls._log_dir}")

    @classmethod
    def _resolve_component(cls, component: str) -> str:
        """Map a module path such as ``value_ledger.store.ledger`` to a component."""
        if not component.startswith("value_ledger."):
            return component
        parts = component.split(".")
        return cls.MODULE_COMPONENTS.get(parts[1], "main")

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (api, ledger, aggregation, ...) or a
                       module path like 'value_ledger.api.tokens'

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        component = cls._resolve_component(component)
        if component not in cls._loggers:
            cls._create_component_logger(component)
        return cls._loggers[component]

    @classmethod
    def _create_component_logger(cls, component: str) -> None:
        """Create a component logger on-demand, sharing the main logger's handlers."""
        logger = logging.getLogger(f"value_ledger.{component}")
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(logging.DEBUG if cls._debug else logging.INFO)
        for handler in cls._loggers["main"].handlers:
            logger.addHandler(handler)
        cls._loggers[component] = logger

    @classmethod
    def log_exception(
        cls, component: str, exc: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an exception with context to both component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls.get_logger("error")

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}",
            exc_info=exc,
        )
        error_logger.error(
            f"[{component}] {type(exc).__name__}: {exc}{context_str}", exc_info=exc
        )


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def initialize_logging(log_dir: Optional[str] = None, debug: Optional[bool] = None) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug)


def log_exception(component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)

