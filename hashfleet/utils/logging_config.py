"""
Centralized Logging Configuration with Rotation

Every long-running fleet process (worker, janitor, autoscaler, API) logs
through a rotating file handler so replicas left running for days do not
fill the disk.
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def default_log_dir() -> Path:
    """Directory for log files, overridable with HASHFLEET_LOG_DIR."""
    override = os.getenv('HASHFLEET_LOG_DIR')
    if override:
        return Path(override)
    return Path.home() / '.hashfleet'


def setup_rotating_logger(
    name: str,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB default
    backup_count: int = 5,              # Keep 5 backup files
    level: int = logging.INFO,
    console_output: bool = True
) -> logging.Logger:
    """
    Set up a logger with rotating file handler to prevent disk space issues.
    
    Args:
        name: Logger name
        log_file: Path to log file (default: ~/.hashfleet/{name}.log)
        max_bytes: Maximum size per log file before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 5)
        level: Logging level (default: INFO)
        console_output: Whether to also log to console (default: True)
        
    Returns:
        Configured logger with rotation
    """
    logger = logging.getLogger(name)
    
    # Clear any existing handlers to avoid duplicates
    logger.handlers.clear()
    logger.setLevel(level)
    
    if log_file is None:
        log_dir = default_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f'{name}.log'
    else:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    
    formatter = logging.Formatter(LOG_FORMAT)
    
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)
    
    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)
    
    return logger


def setup_component_logging(
    component: str,
    level: int = logging.INFO,
    console_output: bool = True,
) -> logging.Logger:
    """
    Route all ``hashfleet.*`` loggers to ``<log dir>/<component>.log``.

    Args:
        component: Process role, e.g. ``worker`` or ``autoscaler``
        level: Logging level (default: INFO)
        console_output: Whether to also log to console (default: True)

    Returns:
        The configured ``hashfleet`` package logger
    """
    logger = setup_rotating_logger(
        'hashfleet',
        log_file=default_log_dir() / f'{component}.log',
        level=level,
        console_output=console_output,
    )
    logger.propagate = False  # Don't duplicate through the root logger
    return logger
