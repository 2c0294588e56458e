import pytest
from prometheus_client import CollectorRegistry

from clustercost.metrics import EngineMetrics


@pytest.fixture()
def registry() -> "CollectorRegistry":
    """
    fresh Prometheus registry to avoid cross-test state.
    """
    return CollectorRegistry()


@pytest.fixture()
def engine_metrics(registry: "CollectorRegistry") -> "EngineMetrics":
    return EngineMetrics(registry=registry)
