"""
Apps Module
Ingestion, reader and writer workloads
"""

from .functions import (
    build_messaging_env,
    create_app_resources,
    create_local_app_resources,
)

__all__ = [
    "build_messaging_env",
    "create_app_resources",
    "create_local_app_resources",
]
