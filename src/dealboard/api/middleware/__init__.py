"""API middleware package."""

from src.dealboard.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
