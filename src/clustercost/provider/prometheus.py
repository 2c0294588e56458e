from typing import Any, Optional

import httpx
import structlog

from clustercost.errors import MalformedResponse, UpstreamQueryError
from clustercost.models import ClusterCostTotals

logger = structlog.get_logger()

QUERY_PATH = "/api/v1/query"

# cluster costs at a monthly rate, averaged over the window
QUERY_CLUSTER_CORES = (
    "sum("
    "avg(avg_over_time(kube_node_status_capacity_cpu_cores[{window}]{offset})) by (node, cluster_id)"
    " * avg(avg_over_time(node_cpu_hourly_cost[{window}]{offset})) by (node, cluster_id) * 730"
    " + avg(avg_over_time(node_gpu_hourly_cost[{window}]{offset})) by (node, cluster_id) * 730"
    ") by (cluster_id)"
)
QUERY_CLUSTER_RAM = (
    "sum("
    "avg(avg_over_time(kube_node_status_capacity_memory_bytes[{window}]{offset})) by (node, cluster_id)"
    " / 1024 / 1024 / 1024"
    " * avg(avg_over_time(node_ram_hourly_cost[{window}]{offset})) by (node, cluster_id) * 730"
    ") by (cluster_id)"
)
QUERY_CLUSTER_STORAGE = (
    "sum("
    "avg(avg_over_time(pv_hourly_cost[{window}]{offset})) by (persistentvolume, cluster_id) * 730"
    " * avg(avg_over_time(kube_persistentvolume_capacity_bytes[{window}]{offset})) by (persistentvolume, cluster_id)"
    " / 1024 / 1024 / 1024"
    ") by (cluster_id)"
)


class PrometheusClient:
    """
    PrometheusClient implements the MetricsClient protocol against
    the Prometheus HTTP API. Calls are synchronous and not retried;
    the timeout bounds each query.
    """

    def __init__(
        self,
        url: "str",
        timeout: "float" = 10.0,
        headers: "Optional[dict[str, str]]" = None,
    ) -> "None":
        self._url = url.rstrip("/")
        self._client: "httpx.Client" = httpx.Client(
            timeout=timeout,
            headers=headers or {},
        )

    def close(self) -> "None":
        """
        closes the underlying HTTP client.
        """
        self._client.close()

    def __enter__(self) -> "PrometheusClient":
        return self

    def __exit__(self, *exc_info: "object") -> "None":
        self.close()

    def query(self, promql: "str") -> "list[dict[str, Any]]":
        """
        runs an instant query and returns the result list.
        """
        logger.debug("prometheus_query", query=promql)
        try:
            resp = self._client.get(
                f"{self._url}{QUERY_PATH}",
                params={"query": promql},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamQueryError(f"prometheus query failed: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedResponse("prometheus returned a non-JSON body") from e

        if not isinstance(body, dict):
            raise MalformedResponse(f"unexpected prometheus response: {body!r}")
        if body.get("status") != "success":
            raise UpstreamQueryError(
                f"prometheus query {body.get('errorType', 'error')}: "
                f"{body.get('error', 'unknown error')}"
            )

        data = body.get("data")
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            raise MalformedResponse(f"unexpected prometheus result: {result!r}")
        return result

    def _values(self, promql: "str") -> "list[list[Any]]":
        values: "list[list[Any]]" = []
        for series in self.query(promql):
            value = series.get("value") if isinstance(series, dict) else None
            if not isinstance(value, list) or len(value) != 2:
                raise MalformedResponse(f"unexpected prometheus sample: {series!r}")
            values.append(value)
        return values

    def cluster_costs(self, window: "str", offset: "str" = "") -> "ClusterCostTotals":
        """
        fetches the monthly CPU, memory and storage cost of the
        cluster, averaged over window and shifted back by offset.
        """
        params = {
            "window": window,
            "offset": f" offset {offset}" if offset else "",
        }
        return ClusterCostTotals(
            cpu_cost=self._values(QUERY_CLUSTER_CORES.format(**params)),
            mem_cost=self._values(QUERY_CLUSTER_RAM.format(**params)),
            storage_cost=self._values(QUERY_CLUSTER_STORAGE.format(**params)),
        )
