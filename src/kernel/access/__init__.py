"""
Access layer - backing store and the caching, authorizing gateway.
"""

from src.kernel.access.gateway import AccessGateway, CacheEntry, GatewayStats, as_caller
from src.kernel.access.store import ProjectStore

__all__ = [
    "AccessGateway",
    "CacheEntry",
    "GatewayStats",
    "ProjectStore",
    "as_caller",
]
