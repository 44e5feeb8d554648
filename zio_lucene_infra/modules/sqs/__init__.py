"""
SQS Module
Ingestion event queue
"""

from .functions import (
    create_sqs_resources,
    create_local_sqs_resources,
)

__all__ = [
    "create_sqs_resources",
    "create_local_sqs_resources",
]
