"""
Device Service

Responsibilities:
- ADS session with the TwinCAT target (pyads)
- Symbol lookup and on-change notification subscription
"""

from .ads_client import AdsNotificationClient, wire_type_for

__all__ = ["AdsNotificationClient", "wire_type_for"]
