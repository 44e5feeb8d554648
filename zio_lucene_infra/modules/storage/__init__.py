"""
Storage Module
S3 bucket for index segments
"""

from .functions import (
    create_bucket_resources,
    create_local_bucket_resources,
)

__all__ = [
    "create_bucket_resources",
    "create_local_bucket_resources",
]
