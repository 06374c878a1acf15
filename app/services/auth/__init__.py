# app/services/auth/__init__.py
"""Bearer token validation."""

from app.services.auth.jwt_handler import JWTHandler

__all__ = ["JWTHandler"]
