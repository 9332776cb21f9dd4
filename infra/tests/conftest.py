"""Global pytest configuration and fixtures for CDK testing."""

import os
import sys
from pathlib import Path

import pytest
from aws_cdk import App
from aws_cdk.assertions import Template

# infra/ for ``app`` and the ``stacks`` package, scripts/ for the operator scripts
infra_path = Path(__file__).parent.parent
scripts_path = infra_path.parent / "scripts"
for path in (infra_path, scripts_path):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from stacks.grafana_stack import GrafanaForTwinMakerStack  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def configure_test_environment():
    """Configure environment variables for consistent testing."""
    test_env = {
        "AWS_DEFAULT_REGION": "us-east-1",
        "AWS_REGION": "us-east-1",
        "CDK_DISABLE_VERSION_CHECK": "true",
        # Prevent actual AWS API calls during testing
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
    }

    for key, value in test_env.items():
        if key not in os.environ:
            os.environ[key] = value


@pytest.fixture
def cdk_app():
    """Create a fresh CDK App instance for each test."""
    return App()


@pytest.fixture(scope="module")
def grafana_stack():
    # synth is slow, share one stack per module
    app = App()
    return GrafanaForTwinMakerStack(app, "TestGrafana")


@pytest.fixture(scope="module")
def template(grafana_stack):
    return Template.from_stack(grafana_stack)
