"""
Middleware modules for the API.
"""

from .correlation import CorrelationMiddleware
from .security import SecurityHeadersMiddleware

__all__ = ["CorrelationMiddleware", "SecurityHeadersMiddleware"]
