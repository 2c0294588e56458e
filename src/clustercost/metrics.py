from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram


class EngineMetrics:
    """
    records the engine's own behaviour as Prometheus metrics:
    degraded pricing, aggregation passes and idle coefficients.
    Exposing the registry is left to the caller.
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self._price_parse_failures: "Counter" = Counter(
            "clustercost_price_parse_failures_total",
            "Total price strings that failed to parse and were priced at zero",
            ["resource"],
            registry=registry,
        )
        self._pricing_config_failures: "Counter" = Counter(
            "clustercost_pricing_config_failures_total",
            "Total custom pricing loads that failed and fell back to node prices",
            registry=registry,
        )
        self._aggregation_duration: "Histogram" = Histogram(
            "clustercost_aggregation_duration_seconds",
            "Duration of aggregation passes",
            ["field"],
            registry=registry,
        )
        self._aggregation_groups: "Gauge" = Gauge(
            "clustercost_aggregation_groups",
            "Number of groups produced by the last aggregation pass",
            ["field"],
            registry=registry,
        )
        self._shared_records: "Counter" = Counter(
            "clustercost_shared_records_total",
            "Total records pooled as shared cost",
            registry=registry,
        )
        self._idle_coefficient: "Gauge" = Gauge(
            "clustercost_idle_coefficient",
            "Last computed idle coefficient",
            registry=registry,
        )

    def inc_price_parse_failure(self, resource: "str") -> "None":
        self._price_parse_failures.labels(resource=resource).inc()

    def inc_pricing_config_failure(self) -> "None":
        self._pricing_config_failures.inc()

    def observe_aggregation(
        self,
        field: "str",
        duration_seconds: "float",
        group_count: "int",
        shared_count: "int",
    ) -> "None":
        """
        records one completed aggregation pass.
        """
        self._aggregation_duration.labels(field=field).observe(duration_seconds)
        self._aggregation_groups.labels(field=field).set(group_count)
        self._shared_records.inc(shared_count)

    def set_idle_coefficient(self, value: "float") -> "None":
        self._idle_coefficient.set(value)
