"""
Secret Sync Module
Secret stores and ExternalSecrets
"""

from .functions import (
    create_secret_sync_resources,
    create_local_secret_sync_resources,
)

__all__ = [
    "create_secret_sync_resources",
    "create_local_secret_sync_resources",
]
