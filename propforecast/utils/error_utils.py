"""
Error handling utilities for PropForecast.

This module provides centralized error handling and logging for the projection
engine. It includes the package exception hierarchy and a decorator for
consistent error reporting across the codebase.
"""

import os
import traceback
import logging
from functools import wraps
import sys
from datetime import datetime

# Configure logging; file handler only when a log file is requested
_handlers = [logging.StreamHandler(sys.stdout)]
if os.getenv("PROPFORECAST_LOG_FILE"):
    _handlers.append(logging.FileHandler(os.environ["PROPFORECAST_LOG_FILE"]))

logging.basicConfig(
    level=os.getenv("PROPFORECAST_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_handlers,
)

logger = logging.getLogger("propforecast")


class ForecastError(Exception):
    """Base exception class for PropForecast errors"""

    def __init__(self, message, details=None):
        self.message = message
        self.details = details
        self.timestamp = datetime.now()
        super().__init__(self.message)


class ProjectionError(ForecastError):
    """Raised when a projection run is requested with unusable parameters"""


def error_handler(func):
    """Decorator for handling errors and providing detailed information"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ForecastError:
            raise
        except Exception as e:
            exc_type, exc_value, exc_tb = sys.exc_info()
            tb = traceback.extract_tb(exc_tb)

            error_location = f"{tb[-1].filename}:{tb[-1].lineno}"
            error_function = tb[-1].name

            error_details = {
                "error_type": exc_type.__name__,
                "location": error_location,
                "function": error_function,
                "arguments": {"args": str(args), "kwargs": str(kwargs)},
                "traceback": traceback.format_exc(),
            }

            logger.error(f"Error in {error_location} - {error_function}: {str(e)}")
            logger.debug(f"Detailed error information: {error_details}")

            raise ForecastError(
                f"Error in {error_function} at {error_location}: {str(e)}",
                error_details,
            ) from e

    return wrapper
