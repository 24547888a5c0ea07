"""
Exception handlers for the G-Club server.

Domain errors raised by the services become ``{"detail": ...}`` responses
with their own status code; anything else is logged and answered with 500.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
