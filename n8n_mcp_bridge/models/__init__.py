"""
Data Models
===========

Pydantic models for the HTTP surface.
"""

from .schemas import ErrorResponse, ServerInfo

__all__ = ["ErrorResponse", "ServerInfo"]
