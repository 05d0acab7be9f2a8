"""Core infrastructure for ShopForge"""

from .database import connect, ensure_indexes

__all__ = [
    "connect",
    "ensure_indexes",
]
