"""
Integrations - adapters for external project sources.
"""

from src.integrations.partner_adapter import PartnerAdapter, PartnerProjectRecord, map_status

__all__ = [
    "PartnerAdapter",
    "PartnerProjectRecord",
    "map_status",
]
