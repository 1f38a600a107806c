"""
Logging Configuration

Configurable logging levels with console output on stderr and optional
rotating log file output for the ingestion pipeline. Configuration dumps
mask API keys and other secrets.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional


SENSITIVE_MARKERS = ("key", "password", "secret", "token", "auth_header_value")


def is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


class LoggingConfig:
    """
    Centralized logging configuration for the ingestion pipeline.
    
    Provides configurable logging levels and optional file output.
    """
    
    def __init__(self):
        self._configured = False
        self._log_file_handler: Optional[logging.Handler] = None
        self._console_handler: Optional[logging.Handler] = None
    
    def configure_logging(
        self,
        level: str = "info",
        log_file: Optional[str] = None,
        include_timestamps: bool = True,
        max_log_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ) -> None:
        """
        Configure logging for the application.
        
        Args:
            level: Logging level (debug, info, warning, error)
            log_file: Optional log file path
            include_timestamps: Whether to include timestamps in console messages
            max_log_file_size: Maximum log file size before rotation
            backup_count: Number of backup log files to keep
        """
        if self._configured:
            return
        
        log_level = self._get_log_level(level)
        debug_mode = log_level == logging.DEBUG
        
        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        root_logger.handlers.clear()
        
        self._console_handler = logging.StreamHandler(sys.stderr)
        self._console_handler.setLevel(log_level)
        self._console_handler.setFormatter(
            self._create_console_formatter(include_timestamps, debug_mode)
        )
        root_logger.addHandler(self._console_handler)
        
        if log_file:
            self._configure_file_logging(log_file, log_level, max_log_file_size, backup_count)
        
        # aiohttp is chatty at debug level
        logging.getLogger("aiohttp").setLevel(max(log_level, logging.INFO))
        
        self._configured = True
        logging.getLogger(__name__).debug(f"Logging configured: level={level}, file={log_file}")
    
    def reset(self) -> None:
        """Remove installed handlers so logging can be configured again."""
        root_logger = logging.getLogger()
        for handler in (self._console_handler, self._log_file_handler):
            if handler is not None:
                root_logger.removeHandler(handler)
                handler.close()
        self._console_handler = None
        self._log_file_handler = None
        self._configured = False
    
    def _get_log_level(self, level_str: str) -> int:
        """Convert string log level to logging constant."""
        level_map = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR
        }
        return level_map.get(level_str.lower(), logging.INFO)
    
    def _create_console_formatter(self, include_timestamps: bool, debug_mode: bool) -> logging.Formatter:
        """Create formatter for console output."""
        parts = []
        if include_timestamps:
            parts.append("%(asctime)s")
        if debug_mode:
            parts.append("%(name)s")
        parts.extend(["%(levelname)s", "%(message)s"])
        
        return logging.Formatter(
            " - ".join(parts),
            datefmt="%H:%M:%S" if not debug_mode else "%Y-%m-%d %H:%M:%S"
        )
    
    def _configure_file_logging(
        self,
        log_file: str,
        log_level: int,
        max_size: int,
        backup_count: int
    ) -> None:
        """Configure file logging with rotation."""
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            self._log_file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
        except OSError as e:
            # Continue with console only
            logging.getLogger(__name__).warning(f"Failed to setup log file {log_file}: {e}")
            return
        
        self._log_file_handler.setLevel(log_level)
        self._log_file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logging.getLogger().addHandler(self._log_file_handler)
    
    def log_configuration_details(self, config: Dict[str, Any]) -> None:
        """Log configuration details at debug level, masking secrets."""
        logger = logging.getLogger(__name__)
        
        if not logger.isEnabledFor(logging.DEBUG):
            return
        
        logger.debug("=== Configuration Details ===")
        for key, value in config.items():
            if is_sensitive(key):
                display_value = "***MASKED***" if value else None
            else:
                display_value = value
            logger.debug(f"  {key}: {display_value}")
        logger.debug("=== End Configuration ===")
    
    def log_operation_timing(self, operation: str, duration: float) -> None:
        """Log operation timing information."""
        logger = logging.getLogger(__name__)
        
        if duration < 1.0:
            logger.debug(f"{operation} completed in {duration*1000:.0f}ms")
        else:
            logger.info(f"{operation} completed in {duration:.1f}s")


# Global logging configuration instance
logging_config = LoggingConfig()

