"""
Middleware components for the Location Ingestor.

This module contains FastAPI middleware for cross-cutting concerns
such as request correlation.
"""

from middleware.request_id import RequestIDMiddleware, request_id_var, REQUEST_ID_HEADER

__all__ = [
    "RequestIDMiddleware",
    "request_id_var",
    "REQUEST_ID_HEADER",
]
