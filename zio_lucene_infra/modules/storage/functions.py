"""
Storage Module Functions
S3 bucket holding the writer's index segments
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict


def create_bucket(name: str, provider: aws.Provider = None, versioning: bool = False,
                  tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create private S3 bucket

    The physical bucket name is generated from the resource name.

    Args:
        name: Resource name
        provider: AWS provider
        versioning: Enable object versioning
        tags: Additional tags

    Returns:
        Dict with bucket resources and outputs
    """
    if not name:
        raise ValueError(f"S3 bucket name cannot be empty. Provided: '{name}'")

    tags = tags or {}

    bucket = aws.s3.Bucket(
        name,
        force_destroy=True,
        tags={
            **tags,
            "Name": name,
            "Module": "storage"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    bucket_versioning = None
    if versioning:
        bucket_versioning = aws.s3.BucketVersioning(
            f"{name}-versioning",
            bucket=bucket.id,
            versioning_configuration=aws.s3.BucketVersioningVersioningConfigurationArgs(
                status="Enabled"
            ),
            opts=pulumi.ResourceOptions(provider=provider)
        )

    public_access_block = aws.s3.BucketPublicAccessBlock(
        f"{name}-pab",
        bucket=bucket.id,
        block_public_acls=True,
        block_public_policy=True,
        ignore_public_acls=True,
        restrict_public_buckets=True,
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "bucket": bucket,
        "bucket_id": bucket.id,
        "bucket_arn": bucket.arn,
        "versioning": bucket_versioning,
        "public_access_block": public_access_block
    }


def create_bucket_resources(name: str, provider: aws.Provider = None, versioning: bool = False,
                            tags: Dict[str, str] = None) -> Dict[str, Any]:
    """Create the segments bucket in AWS"""
    return create_bucket(name, provider, versioning, tags)


def create_local_bucket_resources(name: str, provider: aws.Provider, versioning: bool = False,
                                  tags: Dict[str, str] = None) -> Dict[str, Any]:
    """Create the segments bucket in LocalStack, provider must point at LocalStack"""
    if provider is None:
        raise ValueError("Local bucket needs the LocalStack AWS provider")
    return create_bucket(name, provider, versioning, tags)
