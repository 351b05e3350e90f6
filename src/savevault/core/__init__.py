"""Core discovery modules for SaveVault."""

from savevault.core.channel import DiscoveryChannel, start_discovery_thread
from savevault.core.discovery import ApplicationDiscovery
from savevault.core.models import DiscoveredApplication, DiscoveryResult, DiscoverySource, KnownGameDescriptor

__all__ = [
    "ApplicationDiscovery",
    "DiscoveredApplication",
    "DiscoveryChannel",
    "DiscoveryResult",
    "DiscoverySource",
    "KnownGameDescriptor",
    "start_discovery_thread",
]
