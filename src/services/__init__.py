"""
Application services.
"""

from src.services.registry_service import RegistryService

__all__ = ["RegistryService"]
