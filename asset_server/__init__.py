"""
Multi-tenant static asset server.

Each configured client gets an isolated directory of files, an
authenticated JSON index of their public URLs, and unauthenticated
path-scoped file serving.
"""

from .main import create_app
from .registry import ClientRegistry, load_clients

__version__ = "1.0.0"

__all__ = ["create_app", "ClientRegistry", "load_clients"]
