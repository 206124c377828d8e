"""
HTTP Server Module

FastAPI application serving the Bridge over HTTP.
"""

from .app import create_app, run

__all__ = ["create_app", "run"]
