# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""Global logger instance for the Parlance command framework."""
import logging

logger: logging.Logger = logging.getLogger("parlance")
