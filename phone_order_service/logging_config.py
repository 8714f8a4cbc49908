"""
logging_config.py — Centralized Logging Configuration for the Phone Order Service

This module configures unified logging behavior for the entire application.
It ensures that all modules log messages consistently to both console and file.

Features:
    • Combined console and file logging output
    • Process ID tagging for multi-process visibility
    • Standardized log format for all modules
    • Reduced verbosity for the HTTP client libraries (httpx, httpcore)
"""

import logging
import os
import sys


def setup_logging():
    """
    Configures the global logging system for the application.

    The configuration includes:
        - Log level: LOG_LEVEL environment variable (default INFO)
        - Log format: timestamp, log level, process ID, and message
        - Output destinations:
            1. File: LOG_FILE (default 'order_processing.log'); an empty value disables it
            2. Console (stdout): real-time logs, Docker/serverless compatible
        - Reduced verbosity for third-party libraries such as httpx
    """
    log_format = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_file = os.environ.get("LOG_FILE", "order_processing.log")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )

    # Reduce verbosity from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
