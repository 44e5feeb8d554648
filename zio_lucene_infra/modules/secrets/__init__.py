"""
Secrets Module
Secrets Manager entries
"""

from .functions import (
    datadog_secret_name,
    create_secret_resources,
    create_local_secret_resources,
)

__all__ = [
    "datadog_secret_name",
    "create_secret_resources",
    "create_local_secret_resources",
]
