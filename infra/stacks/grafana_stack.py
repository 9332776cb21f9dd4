"""
AWS CDK stack: Grafana (IoT TwinMaker plugin) on ECS Fargate + ALB + EFS.

Resources:
  - VPC (2 AZs, public + private subnets, NAT gateways)
  - ECS cluster (Fargate only, no EC2 capacity)
  - Encrypted EFS filesystem + access point owned by the grafana user
  - IAM task role, execution role, and a datasource role for TwinMaker
  - Fargate task definition with the EFS volume attached
  - CloudWatch log group for the container
  - Application Load Balanced Fargate service (public)
"""

from __future__ import annotations

from typing import Optional

from constructs import Construct
import aws_cdk as cdk
from aws_cdk import (
    Stack,
    RemovalPolicy,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_efs as efs,
    aws_iam as iam,
    aws_logs as logs,
)

from stacks.config import (
    ADMIN_PASSWORD_PARAMETER,
    CONTAINER_NAME,
    CONTAINER_PORT,
    ECS_TASKS_PRINCIPAL,
    EFS_PATH,
    EFS_PERMISSIONS,
    EXECUTION_ROLE_POLICY,
    GRAFANA_GID,
    GRAFANA_UID,
    HEALTH_CHECK_PATH,
    LOG_STREAM_PREFIX,
    MOUNT_PATH,
    TASK_ROLE_POLICY,
    VOLUME_NAME,
    GrafanaServiceConfig,
    grafana_environment,
)


class GrafanaForTwinMakerStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: Optional[GrafanaServiceConfig] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.config = config or GrafanaServiceConfig()

        # ---------------------------------------------------------------
        # Parameters
        # ---------------------------------------------------------------
        self.admin_password = cdk.CfnParameter(
            self, ADMIN_PASSWORD_PARAMETER,
            type="String",
            description="Provide Admin password for Grafana",
            no_echo=True,
        )

        # ---------------------------------------------------------------
        # VPC + ECS cluster
        # ---------------------------------------------------------------
        self.vpc = ec2.Vpc(self, "grafanaForTwinMakerVPC", max_azs=self.config.max_azs)

        self.cluster = ecs.Cluster(self, "ecsClusterForGrafana", vpc=self.vpc)

        # ---------------------------------------------------------------
        # EFS -- persistent Grafana storage
        # ---------------------------------------------------------------
        self.file_system = efs.FileSystem(
            self, "EfsForGrafana",
            vpc=self.vpc,
            encrypted=True,
            removal_policy=RemovalPolicy.RETAIN,
        )

        # must match the uid the grafana image runs as, or writes fail at runtime
        self.access_point = efs.AccessPoint(
            self, "EfsAccessPoint",
            file_system=self.file_system,
            path=EFS_PATH,
            posix_user=efs.PosixUser(uid=GRAFANA_UID, gid=GRAFANA_GID),
            create_acl=efs.Acl(
                owner_uid=GRAFANA_UID,
                owner_gid=GRAFANA_GID,
                permissions=EFS_PERMISSIONS,
            ),
        )

        # ---------------------------------------------------------------
        # IAM roles
        # ---------------------------------------------------------------
        self.task_role = iam.Role(
            self, "ecsTaskRole",
            assumed_by=iam.ServicePrincipal(ECS_TASKS_PRINCIPAL),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(TASK_ROLE_POLICY),
            ],
        )

        self.execution_role = iam.Role(
            self, "ecsExecutionRole",
            assumed_by=iam.ServicePrincipal(ECS_TASKS_PRINCIPAL),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(EXECUTION_ROLE_POLICY),
            ],
        )

        # Assumed by the TwinMaker data source from inside Grafana; nothing in
        # this stack attaches it, its ARN is exported below.
        self.datasource_role = iam.Role(
            self, "datasourceRole",
            assumed_by=self.task_role,
        )

        # ---------------------------------------------------------------
        # Task definition + container
        # ---------------------------------------------------------------
        self.task_definition = ecs.FargateTaskDefinition(
            self, "ecsForGrafanaTF",
            cpu=self.config.cpu,
            memory_limit_mib=self.config.memory_limit_mib,
            task_role=self.task_role,
            execution_role=self.execution_role,
        )
        self.task_definition.add_volume(
            name=VOLUME_NAME,
            efs_volume_configuration=ecs.EfsVolumeConfiguration(
                file_system_id=self.file_system.file_system_id,
                transit_encryption="ENABLED",
                authorization_config=ecs.AuthorizationConfig(
                    access_point_id=self.access_point.access_point_id,
                ),
            ),
        )

        self.log_group = logs.LogGroup(
            self, "taskLogGroup",
            retention=self.config.log_retention,
        )

        self.container = self.task_definition.add_container(
            CONTAINER_NAME,
            image=ecs.ContainerImage.from_registry(self.config.image),
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=LOG_STREAM_PREFIX,
                log_group=self.log_group,
            ),
            environment=grafana_environment(self.admin_password.value_as_string),
            port_mappings=[ecs.PortMapping(container_port=CONTAINER_PORT)],
        )
        self.container.add_mount_points(
            ecs.MountPoint(
                source_volume=VOLUME_NAME,
                container_path=MOUNT_PATH,
                read_only=False,
            )
        )

        # ---------------------------------------------------------------
        # Fargate service + ALB
        # ---------------------------------------------------------------
        self.service = ecs_patterns.ApplicationLoadBalancedFargateService(
            self, "GrafanaForTwinMakerService",
            cluster=self.cluster,
            task_definition=self.task_definition,
            desired_count=self.config.desired_count,
        )

        self.service.target_group.configure_health_check(path=HEALTH_CHECK_PATH)

        self.file_system.connections.allow_default_port_from(self.service.service)

        # ---------------------------------------------------------------
        # Outputs
        # ---------------------------------------------------------------
        cdk.CfnOutput(self, "VpcId", value=self.vpc.vpc_id)
        cdk.CfnOutput(self, "ClusterName", value=self.cluster.cluster_name)
        cdk.CfnOutput(self, "FileSystemId", value=self.file_system.file_system_id)
        cdk.CfnOutput(self, "AccessPointId", value=self.access_point.access_point_id)
        cdk.CfnOutput(self, "DatasourceRoleArn", value=self.datasource_role.role_arn)
