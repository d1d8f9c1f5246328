"""
Portfolio Engine - queries over collections of projects.
"""

from src.engines.portfolio.project_collection import CollectionStats, ProjectCollection

__all__ = [
    "CollectionStats",
    "ProjectCollection",
]
