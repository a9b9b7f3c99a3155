"""Authentication module for duckproxy."""

from .api_key import ApiKeyValidator

__all__ = ["ApiKeyValidator"]
