"""
Deployment configuration for the Grafana for TwinMaker stack.

Fixed literals live as module constants; the tunable deployment shape lives
in ``GrafanaServiceConfig`` and can be overridden through CDK context:

    cdk synth -c grafanaImageTag=10.4.2 -c desiredCount=2
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from aws_cdk import aws_logs as logs

# container
CONTAINER_NAME = "web"
CONTAINER_PORT = 3000
GRAFANA_PLUGINS = "grafana-iot-twinmaker-app"
HEALTH_CHECK_PATH = "/api/health"
LOG_STREAM_PREFIX = "grafanaForTwinMaker"

# shared storage
VOLUME_NAME = "ecsVolume"
EFS_PATH = "/grafana"
MOUNT_PATH = "/grafana"
# uid of the non-root "grafana" user baked into the official image
GRAFANA_UID = "472"
GRAFANA_GID = "0"
EFS_PERMISSIONS = "755"

# IAM
ECS_TASKS_PRINCIPAL = "ecs-tasks.amazonaws.com"
TASK_ROLE_POLICY = "CloudWatchReadOnlyAccess"
EXECUTION_ROLE_POLICY = "service-role/AmazonECSTaskExecutionRolePolicy"

ADMIN_PASSWORD_PARAMETER = "grafanaAdminPassword"

# cpu units -> accepted memory (MiB) on Fargate
FARGATE_MEMORY_BY_CPU: Dict[int, range] = {
    256: range(512, 2049, 512),
    512: range(1024, 4097, 1024),
    1024: range(2048, 8193, 1024),
    2048: range(4096, 16385, 1024),
    4096: range(8192, 30721, 1024),
    8192: range(16384, 61441, 4096),
    16384: range(32768, 122881, 8192),
}


def grafana_environment(admin_password: str) -> Dict[str, str]:
    """Environment passed to the Grafana container. Nothing else is set."""
    return {
        "GF_SECURITY_ADMIN_PASSWORD": admin_password,
        "GF_INSTALL_PLUGINS": GRAFANA_PLUGINS,
    }


@dataclass
class GrafanaServiceConfig:
    max_azs: int = 2
    cpu: int = 1024
    memory_limit_mib: int = 2048
    desired_count: int = 1
    image_repository: str = "grafana/grafana"
    image_tag: str = "latest"
    log_retention: logs.RetentionDays = logs.RetentionDays.TWO_WEEKS

    def __post_init__(self) -> None:
        if self.max_azs < 1:
            raise ValueError(f"max_azs must be at least 1, got {self.max_azs}")
        if self.desired_count < 0:
            raise ValueError(f"desired_count must not be negative, got {self.desired_count}")
        if not self.image_tag or not self.image_tag.strip():
            raise ValueError("image_tag must not be empty")

        allowed = FARGATE_MEMORY_BY_CPU.get(self.cpu)
        if allowed is None:
            raise ValueError(
                f"Unsupported Fargate cpu value {self.cpu}; "
                f"expected one of {sorted(FARGATE_MEMORY_BY_CPU)}"
            )
        if self.memory_limit_mib not in allowed:
            raise ValueError(
                f"memory_limit_mib={self.memory_limit_mib} is not valid for cpu={self.cpu} "
                f"(allowed {allowed.start}-{allowed.stop - 1} in steps of {allowed.step})"
            )

    @property
    def image(self) -> str:
        return f"{self.image_repository}:{self.image_tag}"

    @classmethod
    def from_context(cls, node: Any) -> "GrafanaServiceConfig":
        """
        Build a config from CDK context on *node*.

        Recognised keys: grafanaImageTag, desiredCount, cpu, memoryLimitMiB.
        Context values passed with ``-c`` arrive as strings, so numbers are
        coerced here.
        """
        overrides: Dict[str, Any] = {}

        tag: Optional[str] = node.try_get_context("grafanaImageTag")
        if tag is not None:
            overrides["image_tag"] = str(tag)

        for key, field in (
            ("desiredCount", "desired_count"),
            ("cpu", "cpu"),
            ("memoryLimitMiB", "memory_limit_mib"),
        ):
            value = node.try_get_context(key)
            if value is None:
                continue
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"Context value {key}={value!r} is not an integer")
            try:
                overrides[field] = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"Context value {key}={value!r} is not an integer") from None

        return cls(**overrides)
