"""Data models for services, contact preferences, shares, and history."""
from beatbridge.models.contact import ContactPreference, PendingContactSelection
from beatbridge.models.record import ConversionRecord, Resolution
from beatbridge.models.service import SERVICE_INFO, MusicService, ServiceInfo
from beatbridge.models.share import PendingShare

__all__ = [
    "ContactPreference",
    "ConversionRecord",
    "MusicService",
    "PendingContactSelection",
    "PendingShare",
    "Resolution",
    "SERVICE_INFO",
    "ServiceInfo",
]
