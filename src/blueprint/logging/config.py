import os
import logging
import logging.handlers
from typing import Optional
from pathlib import Path
import json
from datetime import datetime, timezone


class LogConfig:
    """Logging configuration manager."""

    def __init__(
        self,
        log_level: str = 'INFO',
        log_file: Optional[str] = None,
        log_format: Optional[str] = None,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        json_logging: bool = False
    ):
        """
        Initialize the logging configuration.

        Args:
            log_level: Logging level
            log_file: Optional log file path
            log_format: Optional log format string
            max_bytes: Maximum size of log file before rotation
            backup_count: Number of backup files to keep
            json_logging: Whether to use JSON logging format
        """
        self.log_level = getattr(logging, log_level.upper())
        self.log_file = log_file
        self.log_format = log_format or (
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.json_logging = json_logging

    @classmethod
    def from_configuration(cls, config) -> 'LogConfig':
        """Build a LogConfig from a BlueprintConfiguration."""
        return cls(
            log_level=config.log_level,
            log_file=str(config.log_file) if config.log_file else None,
            json_logging=config.json_logging,
        )

    def configure(self, logger_name: str = "blueprint") -> logging.Logger:
        """
        Configure logging with the specified settings.

        Only the package logger is touched so that embedding applications
        keep control of the root logger.

        Args:
            logger_name: Name of the logger to configure

        Returns:
            The configured logger
        """
        if self.json_logging:
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(self.log_format)

        handlers = []

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self.log_level)
        handlers.append(console_handler)

        if self.log_file:
            log_dir = os.path.dirname(self.log_file)
            if log_dir:
                Path(log_dir).mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(self.log_level)
            handlers.append(file_handler)

        package_logger = logging.getLogger(logger_name)
        package_logger.setLevel(self.log_level)

        # Remove existing handlers
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)
            handler.close()

        for handler in handlers:
            package_logger.addHandler(handler)

        return package_logger


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string
        """
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra'):
            log_data.update(record.extra)

        return json.dumps(log_data)
