"""
Logging configuration for the UCMS backend.
"""
import logging
import sys


def setup_logging(log_level: str = "INFO", service_name: str = "ucms") -> None:
    """
    Configure the root logger once for the whole application.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name printed in every record
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=f"%(asctime)s - {service_name} - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
