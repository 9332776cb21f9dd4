#!/usr/bin/env python3
"""
AWS CDK entry point.

Provisions:
  - VPC with public/private subnets across two AZs
  - ECS cluster for the Grafana service
  - Encrypted EFS filesystem for Grafana state
  - IAM roles for the task, its execution, and the TwinMaker data source
  - ECS Fargate service running Grafana with the IoT TwinMaker plugin
  - Application Load Balancer

Deploy with:
    cdk deploy --parameters grafanaAdminPassword=<password>
"""

import logging

import aws_cdk as cdk

from stacks.config import GrafanaServiceConfig
from stacks.grafana_stack import GrafanaForTwinMakerStack

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger("grafana_infra")


def build_stack(app: cdk.App) -> GrafanaForTwinMakerStack:
    """Read config and environment from *app* context and add the stack to it."""
    config = GrafanaServiceConfig.from_context(app.node)
    logger.info(
        "Synthesizing with image=%s cpu=%d memory=%dMiB desired_count=%d",
        config.image, config.cpu, config.memory_limit_mib, config.desired_count,
    )
    if config.image_tag == "latest":
        logger.warning("Image tag 'latest' is not reproducible; pin it with -c grafanaImageTag=<version>")

    return GrafanaForTwinMakerStack(
        app,
        "GrafanaForTwinMakerStack",
        config=config,
        env=cdk.Environment(
            account=app.node.try_get_context("account"),
            region=app.node.try_get_context("region") or "us-east-1",
        ),
    )


def main():
    app = cdk.App()
    build_stack(app)
    app.synth()


if __name__ == "__main__":
    main()
