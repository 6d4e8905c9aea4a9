"""Web interface for EduCloud."""

from .server import create_app

__all__ = ["create_app"]
