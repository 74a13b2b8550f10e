"""
API route modules.

Contains FastAPI routers for factor validation and projections.
"""

from propforecast.api.routes import factors, projections

__all__ = ["factors", "projections"]
