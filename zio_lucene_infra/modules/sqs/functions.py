"""
SQS Module Functions
Queue carrying ingestion events to the writer when messagingMode is sqs
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict

VISIBILITY_TIMEOUT_SECONDS = 30
MESSAGE_RETENTION_SECONDS = 86400  # 1 day


def create_queue(queue_name: str, provider: aws.Provider = None,
                 tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create standard SQS queue

    Args:
        queue_name: Queue name, also the resource name
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with queue resource, url and arn
    """
    if not queue_name:
        raise ValueError(f"SQS queue name cannot be empty. Provided: '{queue_name}'")

    tags = tags or {}

    queue = aws.sqs.Queue(
        queue_name,
        name=queue_name,
        visibility_timeout_seconds=VISIBILITY_TIMEOUT_SECONDS,
        message_retention_seconds=MESSAGE_RETENTION_SECONDS,
        tags={
            **tags,
            "Name": queue_name,
            "Module": "sqs"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "queue": queue,
        "queue_url": queue.url,
        "queue_arn": queue.arn
    }


def create_sqs_resources(queue_name: str, provider: aws.Provider = None,
                         tags: Dict[str, str] = None) -> Dict[str, Any]:
    return create_queue(queue_name, provider, tags)


def create_local_sqs_resources(queue_name: str, provider: aws.Provider,
                               tags: Dict[str, str] = None) -> Dict[str, Any]:
    """Create the queue in LocalStack, provider must point at LocalStack"""
    if provider is None:
        raise ValueError("Local queue needs the LocalStack AWS provider")
    return create_queue(queue_name, provider, tags)
