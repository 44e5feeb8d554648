"""
Kafka Module
MSK on AWS, KRaft StatefulSet on k3d
"""

from .functions import (
    create_kafka_resources,
    create_local_kafka_resources,
    local_bootstrap_servers,
)

__all__ = [
    "create_kafka_resources",
    "create_local_kafka_resources",
    "local_bootstrap_servers",
]
