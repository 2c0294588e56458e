from typing import Protocol

from clustercost.models import ClusterCostTotals, CustomPricing


class PricingProvider(Protocol):
    """
    PricingProvider supplies custom resource prices that override
    the prices reported by nodes.

    load_config raises PricingConfigUnavailable when the
    configuration cannot be read.
    """

    def custom_pricing_enabled(self) -> "bool": ...

    def load_config(self) -> "CustomPricing": ...


class MetricsClient(Protocol):
    """
    MetricsClient answers cluster-level cost queries against the
    metrics backend. Only the idle coefficient calculation uses it.

    cluster_costs raises UpstreamQueryError when the backend
    cannot be queried.
    """

    def cluster_costs(
        self,
        window: "str",
        offset: "str",
    ) -> "ClusterCostTotals": ...
