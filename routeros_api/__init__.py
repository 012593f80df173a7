"""RouterOS API client - asyncio client for the MikroTik RouterOS binary API.

Speaks the length-prefixed word protocol of the RouterOS `api` (8728) and
`api-ssl` (8729) services: login, one command at a time, decoded replies.
"""

__version__ = "0.1.0"
__author__ = "RouterOS API Contributors"

from routeros_api import commands
from routeros_api.config import Settings, get_settings, load_settings_from_file, set_settings
from routeros_api.infra.routeros import (
    ConnectionState,
    Reply,
    RouterOSApiClient,
    RouterOSError,
    RouterOSLoginError,
    RouterOSNotConnectedError,
    RouterOSTrapError,
)

__all__ = [
    "ConnectionState",
    "Reply",
    "RouterOSApiClient",
    "RouterOSError",
    "RouterOSLoginError",
    "RouterOSNotConnectedError",
    "RouterOSTrapError",
    "Settings",
    "__version__",
    "commands",
    "get_settings",
    "load_settings_from_file",
    "set_settings",
]
