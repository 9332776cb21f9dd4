from stacks.config import GrafanaServiceConfig
from stacks.grafana_stack import GrafanaForTwinMakerStack

__all__ = ["GrafanaForTwinMakerStack", "GrafanaServiceConfig"]
