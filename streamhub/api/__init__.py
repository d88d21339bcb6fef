"""API package exports."""

from streamhub.api.middleware import CorrelationIdMiddleware
from streamhub.api.routes import router

__all__ = ["router", "CorrelationIdMiddleware"]
