"""Tests for the CDK application entry point."""

import logging
from unittest.mock import patch

from aws_cdk import App
from aws_cdk.assertions import Template

import app as cdk_entry
from stacks.grafana_stack import GrafanaForTwinMakerStack


class TestBuildStack:
    def test_builds_stack_with_default_region(self):
        stack = cdk_entry.build_stack(App())

        assert isinstance(stack, GrafanaForTwinMakerStack)
        assert stack.stack_name == "GrafanaForTwinMakerStack"
        assert stack.region == "us-east-1"

    def test_region_and_account_from_context(self):
        app = App(context={"region": "eu-west-1", "account": "123456789012"})
        stack = cdk_entry.build_stack(app)

        assert stack.region == "eu-west-1"
        assert stack.account == "123456789012"

    def test_config_from_context(self):
        app = App(context={"grafanaImageTag": "10.4.2", "desiredCount": "2"})
        template = Template.from_stack(cdk_entry.build_stack(app))

        template.has_resource_properties("AWS::ECS::Service", {"DesiredCount": 2})
        containers = next(iter(
            template.find_resources("AWS::ECS::TaskDefinition").values()
        ))["Properties"]["ContainerDefinitions"]
        assert containers[0]["Image"] == "grafana/grafana:10.4.2"

    def test_warns_on_floating_image_tag(self, caplog):
        with caplog.at_level(logging.WARNING, logger="grafana_infra"):
            cdk_entry.build_stack(App())
        assert "not reproducible" in caplog.text

    def test_pinned_image_tag_does_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="grafana_infra"):
            cdk_entry.build_stack(App(context={"grafanaImageTag": "10.4.2"}))
        assert "not reproducible" not in caplog.text


class TestMain:
    @patch.object(cdk_entry, "build_stack")
    @patch.object(cdk_entry.cdk, "App")
    def test_builds_then_synthesizes(self, mock_app_cls, mock_build):
        cdk_entry.main()

        app = mock_app_cls.return_value
        mock_build.assert_called_once_with(app)
        app.synth.assert_called_once_with()
