"""API package exports."""

from recordstore.api.middleware import CorrelationIdMiddleware
from recordstore.api.routes import router

__all__ = ["router", "CorrelationIdMiddleware"]
