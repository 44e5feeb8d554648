"""
Unit tests for the ingestion, reader and writer workloads
"""

import unittest
from unittest.mock import Mock, patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zio_lucene_infra.modules.apps.functions import (
    CONTAINER_PORT,
    READER_PORT,
    WRITER_CONFIG_MAP,
    WRITER_PORT,
    build_aws_endpoint_env,
    build_messaging_env,
    build_otel_env,
    create_app_resources,
    create_local_app_resources,
)

IMAGES = {
    "ingestion": "mattlangsenkamp/ingestion-server:latest",
    "reader": "mattlangsenkamp/reader-server:latest",
    "writer": "mattlangsenkamp/writer-server:latest",
}

FUNCTIONS = 'zio_lucene_infra.modules.apps.functions'


class TestAppEnvironment(unittest.TestCase):
    """Test the environment builders"""

    def test_kafka_env(self):
        env = build_messaging_env("kafka", bootstrap_servers="kafka:9092")
        self.assertEqual(env, {"MESSAGING_MODE": "kafka", "KAFKA_BOOTSTRAP_SERVERS": "kafka:9092"})

    def test_sqs_env(self):
        env = build_messaging_env("sqs", queue_url="https://sqs/queue")
        self.assertEqual(env, {"MESSAGING_MODE": "sqs", "SQS_QUEUE_URL": "https://sqs/queue"})

        env = build_messaging_env("sqs", queue_url="https://sqs/queue", include_queue_url=False)
        self.assertEqual(env, {"MESSAGING_MODE": "sqs"})

    def test_messaging_env_requires_transport(self):
        """Each mode needs its own connection setting"""
        with self.assertRaises(ValueError):
            build_messaging_env("kafka", queue_url="https://sqs/queue")
        with self.assertRaises(ValueError):
            build_messaging_env("sqs", bootstrap_servers="kafka:9092")
        with self.assertRaises(ValueError):
            build_messaging_env("rabbitmq", bootstrap_servers="kafka:9092")

    def test_aws_endpoint_env(self):
        self.assertEqual(build_aws_endpoint_env(None), {})

        env = build_aws_endpoint_env("http://host.k3d.internal:4566")
        self.assertEqual(env["AWS_ENDPOINT_URL_SQS"], "http://host.k3d.internal:4566")
        self.assertEqual(env["AWS_ENDPOINT_URL_S3"], "http://host.k3d.internal:4566")
        self.assertEqual(env["AWS_ACCESS_KEY_ID"], "test")

    def test_otel_env(self):
        self.assertEqual(build_otel_env("reader", None), {})
        self.assertEqual(
            build_otel_env("reader", "http://collector:4317"),
            {"OTEL_SERVICE_NAME": "reader", "OTEL_EXPORTER_OTLP_ENDPOINT": "http://collector:4317"}
        )


class TestAppFunctions(unittest.TestCase):
    """Test workload declarations"""

    def deploy(self, deploy_fn, *args, **kwargs):
        """Run deploy_fn with Kubernetes mocked, return the mocks and the result"""
        with patch(f'{FUNCTIONS}.k8s') as mock_k8s, \
             patch(f'{FUNCTIONS}.build_env_vars', side_effect=lambda env: env), \
             patch(f'{FUNCTIONS}.create_headless_service') as mock_headless, \
             patch(f'{FUNCTIONS}.create_stateful_set') as mock_sts, \
             patch(f'{FUNCTIONS}.require_metadata_name') as mock_name:
            result = deploy_fn(*args, **kwargs)
        return {
            "k8s": mock_k8s,
            "headless": mock_headless,
            "stateful_set": mock_sts,
            "require_name": mock_name,
            "result": result,
        }

    def container_env(self, mock_k8s, name):
        for call in mock_k8s.core.v1.ContainerArgs.call_args_list:
            if call.kwargs["name"] == name:
                return call.kwargs["env"]
        self.fail(f"No container named {name}")

    def test_kafka_deployment(self):
        """Ingestion and writer get the bootstrap servers"""
        mocks = self.deploy(
            create_app_resources,
            "zio-lucene", "segments-abc", IMAGES, "Always", "kafka", "us-east-1", "gp2", Mock(),
            bootstrap_servers="b-1.kafka:9092"
        )
        mock_k8s = mocks["k8s"]
        result = mocks["result"]

        self.assertEqual(set(result), {"ingestion", "reader", "writer"})
        self.assertEqual(result["reader"]["service_name"], mocks["require_name"].return_value)

        ingestion_env = self.container_env(mock_k8s, "ingestion")
        self.assertEqual(ingestion_env["KAFKA_BOOTSTRAP_SERVERS"], "b-1.kafka:9092")
        self.assertEqual(ingestion_env["S3_BUCKET_NAME"], "segments-abc")
        self.assertEqual(ingestion_env["AWS_REGION"], "us-east-1")
        self.assertNotIn("AWS_ENDPOINT_URL_SQS", ingestion_env)

        reader_env = self.container_env(mock_k8s, "reader")
        self.assertEqual(reader_env, {"S3_BUCKET_NAME": "segments-abc", "AWS_REGION": "us-east-1"})

        writer_env = mocks["stateful_set"].call_args.kwargs["env_vars"]
        self.assertEqual(writer_env["MESSAGING_MODE"], "kafka")
        self.assertEqual(writer_env["KAFKA_BOOTSTRAP_SERVERS"], "b-1.kafka:9092")
        self.assertEqual(writer_env["AWS_REGION"], "us-east-1")

        images = {call.kwargs["name"]: call.kwargs["image"] for call in mock_k8s.core.v1.ContainerArgs.call_args_list}
        self.assertEqual(images, {"ingestion": IMAGES["ingestion"], "reader": IMAGES["reader"]})

    def test_service_ports(self):
        """Reader listens on 80, writer on 8082, containers on 8080"""
        mocks = self.deploy(
            create_app_resources,
            "zio-lucene", "segments-abc", IMAGES, "Always", "kafka", "us-east-1", "gp2", Mock(),
            bootstrap_servers="b-1.kafka:9092"
        )
        mock_k8s = mocks["k8s"]

        ports = {call.kwargs["port"] for call in mock_k8s.core.v1.ServicePortArgs.call_args_list}
        self.assertIn(READER_PORT, ports)
        for call in mock_k8s.core.v1.ServicePortArgs.call_args_list:
            self.assertEqual(call.kwargs["target_port"], CONTAINER_PORT)

        headless_args, headless_kwargs = mocks["headless"].call_args
        self.assertEqual(headless_args[0], "writer")
        self.assertEqual(headless_args[3], WRITER_PORT)
        self.assertEqual(headless_kwargs["target_port"], CONTAINER_PORT)

    def test_sqs_writer_config_map(self):
        """Writer reads the queue URL from its config map"""
        storage_addon = Mock()
        mocks = self.deploy(
            create_app_resources,
            "zio-lucene", "segments-abc", IMAGES, "Always", "sqs", "us-east-1", "gp2", Mock(),
            queue_url="https://sqs/queue",
            storage_depends_on=[storage_addon]
        )
        mock_k8s = mocks["k8s"]

        config_map_args, config_map_kwargs = mock_k8s.core.v1.ConfigMap.call_args
        self.assertEqual(config_map_args[0], WRITER_CONFIG_MAP)
        self.assertEqual(config_map_kwargs["data"], {"SQS_QUEUE_URL": "https://sqs/queue"})

        sts_kwargs = mocks["stateful_set"].call_args.kwargs
        self.assertEqual(sts_kwargs["config_map_refs"], [WRITER_CONFIG_MAP])
        self.assertNotIn("SQS_QUEUE_URL", sts_kwargs["env_vars"])
        self.assertEqual(sts_kwargs["storage_class_name"], "gp2")
        self.assertEqual(sts_kwargs["volume_mounts"], {"writer-data": "/data"})
        self.assertIn(storage_addon, sts_kwargs["depends_on"])

        ingestion_env = self.container_env(mock_k8s, "ingestion")
        self.assertEqual(ingestion_env["SQS_QUEUE_URL"], "https://sqs/queue")

    def test_missing_image(self):
        """Every service needs an image"""
        with self.assertRaises(ValueError) as ctx:
            self.deploy(
                create_app_resources,
                "zio-lucene", "segments-abc", {"reader": "reader-server:latest"}, "Always", "kafka",
                "us-east-1", "gp2", Mock(), bootstrap_servers="b-1.kafka:9092"
            )
        self.assertIn("ingestion", str(ctx.exception))

    def test_local_deployment(self):
        """Local services talk to LocalStack and report to the collector"""
        mocks = self.deploy(
            create_local_app_resources,
            "zio-lucene", "segments-abc", IMAGES, "IfNotPresent", "sqs", "us-east-1", "local-path", Mock(),
            "http://host.k3d.internal:4566",
            queue_url="http://localhost:4566/000000000000/zio-lucene-ingestion-events",
            otlp_endpoint="http://collector:4317"
        )
        mock_k8s = mocks["k8s"]

        for name in ("ingestion", "reader"):
            env = self.container_env(mock_k8s, name)
            self.assertEqual(env["AWS_ENDPOINT_URL_S3"], "http://host.k3d.internal:4566")
            # No instance metadata on k3d, the SDKs need the region spelled out
            self.assertEqual(env["AWS_REGION"], "us-east-1")
            self.assertEqual(env["OTEL_SERVICE_NAME"], name)

        writer_env = mocks["stateful_set"].call_args.kwargs["env_vars"]
        self.assertEqual(writer_env["AWS_ENDPOINT_URL_SQS"], "http://host.k3d.internal:4566")
        self.assertEqual(mocks["stateful_set"].call_args.kwargs["image_pull_policy"], "IfNotPresent")

    def test_local_deployment_needs_endpoint(self):
        with self.assertRaises(ValueError):
            self.deploy(
                create_local_app_resources,
                "zio-lucene", "segments-abc", IMAGES, "IfNotPresent", "kafka", "us-east-1", "local-path",
                Mock(), "", bootstrap_servers="kafka:9092"
            )


if __name__ == "__main__":
    unittest.main(verbosity=2)
