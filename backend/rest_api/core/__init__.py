"""
Application wiring for the REST surface: CORS and exception handlers.
"""

from rest_api.core.cors import configure_cors
from rest_api.core.errors import register_exception_handlers

__all__ = ["configure_cors", "register_exception_handlers"]
