"""
Kafka Module Functions
MSK cluster in the private subnets for AWS stacks, single-broker KRaft StatefulSet on k3d
"""

import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s
from typing import Any, Dict, List

from zio_lucene_infra.modules.kubernetes import create_headless_service, create_stateful_set

KAFKA_PORT = 9092
KAFKA_TLS_PORT = 9094
KAFKA_CONTROLLER_PORT = 9093
LOCAL_KAFKA_IMAGE = "apache/kafka:4.1.0"
LOCAL_KAFKA_NAME = "kafka"


def create_msk_security_group(name_prefix: str, vpc_id: pulumi.Output[str], vpc_cidr: str,
                              provider: aws.Provider = None,
                              tags: Dict[str, str] = None) -> aws.ec2.SecurityGroup:
    """
    Create security group admitting Kafka clients from inside the VPC

    Args:
        name_prefix: Resource name prefix
        vpc_id: VPC ID
        vpc_cidr: VPC CIDR allowed to reach the brokers
        provider: AWS provider
        tags: Additional tags

    Returns:
        Security group resource
    """
    tags = tags or {}

    return aws.ec2.SecurityGroup(
        f"{name_prefix}-msk-sg",
        vpc_id=vpc_id,
        description="Security group for MSK cluster",
        ingress=[
            aws.ec2.SecurityGroupIngressArgs(
                description="Kafka plaintext",
                protocol="tcp",
                from_port=KAFKA_PORT,
                to_port=KAFKA_PORT,
                cidr_blocks=[vpc_cidr]
            ),
            aws.ec2.SecurityGroupIngressArgs(
                description="Kafka TLS",
                protocol="tcp",
                from_port=KAFKA_TLS_PORT,
                to_port=KAFKA_TLS_PORT,
                cidr_blocks=[vpc_cidr]
            )
        ],
        egress=[
            aws.ec2.SecurityGroupEgressArgs(
                protocol="-1",
                from_port=0,
                to_port=0,
                cidr_blocks=["0.0.0.0/0"]
            )
        ],
        tags={
            **tags,
            "Name": f"{name_prefix}-msk-sg",
            "Module": "kafka"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )


def create_kafka_resources(name_prefix: str, vpc_id: pulumi.Output[str],
                           private_subnet_ids: List[pulumi.Output[str]],
                           vpc_cidr: str = "10.0.0.0/16",
                           kafka_version: str = "3.9.x",
                           broker_count: int = 2,
                           instance_type: str = "kafka.t3.small",
                           volume_size: int = 10,
                           provider: aws.Provider = None,
                           tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create MSK cluster

    Args:
        name_prefix: Resource name prefix
        vpc_id: VPC ID
        private_subnet_ids: Client subnets, one broker per subnet at a time
        vpc_cidr: VPC CIDR allowed to reach the brokers
        kafka_version: Kafka version
        broker_count: Number of broker nodes, a multiple of the subnet count
        instance_type: Broker instance type
        volume_size: EBS volume size per broker in GiB
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with bootstrap brokers, ARN and resource references
    """
    tags = tags or {}

    if not private_subnet_ids:
        raise ValueError("MSK needs at least one client subnet")
    if broker_count % len(private_subnet_ids) != 0:
        raise ValueError(
            f"MSK broker count {broker_count} must be a multiple of the {len(private_subnet_ids)} client subnets"
        )

    security_group = create_msk_security_group(name_prefix, vpc_id, vpc_cidr, provider, tags)

    cluster = aws.msk.Cluster(
        f"{name_prefix}-msk",
        cluster_name=f"{name_prefix}-kafka",
        kafka_version=kafka_version,
        number_of_broker_nodes=broker_count,
        broker_node_group_info=aws.msk.ClusterBrokerNodeGroupInfoArgs(
            instance_type=instance_type,
            client_subnets=private_subnet_ids,
            security_groups=[security_group.id],
            storage_info=aws.msk.ClusterBrokerNodeGroupInfoStorageInfoArgs(
                ebs_storage_info=aws.msk.ClusterBrokerNodeGroupInfoStorageInfoEbsStorageInfoArgs(
                    volume_size=volume_size
                )
            )
        ),
        # Plaintext listeners are what the services connect to
        encryption_info=aws.msk.ClusterEncryptionInfoArgs(
            encryption_in_transit=aws.msk.ClusterEncryptionInfoEncryptionInTransitArgs(
                client_broker="TLS_PLAINTEXT",
                in_cluster=True
            )
        ),
        tags={
            **tags,
            "Name": f"{name_prefix}-kafka",
            "Module": "kafka"
        },
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[security_group])
    )

    return {
        "bootstrap_servers": cluster.bootstrap_brokers,
        "cluster_arn": cluster.arn,
        # Keep references to resources for dependencies
        "security_group": security_group,
        "cluster": cluster
    }


def local_broker_host(namespace: str) -> str:
    return f"{LOCAL_KAFKA_NAME}-0.{LOCAL_KAFKA_NAME}.{namespace}.svc.cluster.local"


def local_bootstrap_servers(namespace: str) -> str:
    return f"{local_broker_host(namespace)}:{KAFKA_PORT}"


def build_local_kafka_env(namespace: str) -> Dict[str, str]:
    """KRaft settings for a single node acting as both broker and controller"""
    host = local_broker_host(namespace)
    return {
        "KAFKA_NODE_ID": "1",
        "KAFKA_PROCESS_ROLES": "broker,controller",
        "KAFKA_LISTENERS": f"PLAINTEXT://0.0.0.0:{KAFKA_PORT},CONTROLLER://0.0.0.0:{KAFKA_CONTROLLER_PORT}",
        "KAFKA_ADVERTISED_LISTENERS": f"PLAINTEXT://{host}:{KAFKA_PORT}",
        "KAFKA_CONTROLLER_QUORUM_VOTERS": f"1@{host}:{KAFKA_CONTROLLER_PORT}",
        "KAFKA_CONTROLLER_LISTENER_NAMES": "CONTROLLER",
        "KAFKA_LISTENER_SECURITY_PROTOCOL_MAP": "CONTROLLER:PLAINTEXT,PLAINTEXT:PLAINTEXT",
        "KAFKA_OFFSETS_TOPIC_REPLICATION_FACTOR": "1",
        "KAFKA_TRANSACTION_STATE_LOG_REPLICATION_FACTOR": "1",
        "KAFKA_TRANSACTION_STATE_LOG_MIN_ISR": "1",
        "CLUSTER_ID": "zio-lucene-kafka-cluster",
    }


def create_local_kafka_resources(namespace: str, provider: k8s.Provider,
                                 storage_class_name: str = None,
                                 depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Run Kafka inside k3d

    Args:
        namespace: Namespace name, part of the broker's DNS name
        provider: Kubernetes provider
        storage_class_name: Storage class for the data volume
        depends_on: Resources that must exist first (namespace)

    Returns:
        Dict with bootstrap servers, service and statefulset
    """
    if not namespace:
        raise ValueError("Local Kafka needs a namespace")

    selector = {"app": LOCAL_KAFKA_NAME}

    service = create_headless_service(
        LOCAL_KAFKA_NAME,
        namespace,
        selector,
        KAFKA_PORT,
        provider,
        port_name="kafka",
        depends_on=depends_on
    )

    stateful_set = create_stateful_set(
        LOCAL_KAFKA_NAME,
        namespace,
        service_name=LOCAL_KAFKA_NAME,
        image=LOCAL_KAFKA_IMAGE,
        ports={"kafka": KAFKA_PORT},
        provider=provider,
        env_vars=build_local_kafka_env(namespace),
        volume_mounts={f"{LOCAL_KAFKA_NAME}-data": "/var/lib/kafka/data"},
        storage_size="1Gi",
        storage_class_name=storage_class_name,
        depends_on=[service, *(depends_on or [])]
    )

    return {
        "bootstrap_servers": local_bootstrap_servers(namespace),
        "service": service,
        "stateful_set": stateful_set
    }
