"""HTTP API for Claude Web Proxy."""

from .app import create_app


__all__ = ["create_app"]
