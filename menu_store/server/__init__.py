"""
REST store server.

Run with:
    python -m menu_store.server
"""

from menu_store.server.app import create_app

__all__ = ["create_app"]
