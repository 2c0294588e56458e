import httpx
import pytest
import respx

from clustercost.errors import MalformedResponse, UpstreamQueryError
from clustercost.provider.prometheus import QUERY_PATH, PrometheusClient

PROM_URL = "http://prometheus.monitoring:9090"


def _vector(value: "str") -> "dict":
    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [
                {"metric": {"cluster_id": "east"}, "value": [1700000000.0, value]},
            ],
        },
    }


class TestPrometheusClientQuery:
    @respx.mock
    def test_returns_result_list(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(200, json=_vector("12.5"))
        )
        with PrometheusClient(PROM_URL) as client:
            result = client.query("up")
        assert result == [
            {"metric": {"cluster_id": "east"}, "value": [1700000000.0, "12.5"]}
        ]

    @respx.mock
    def test_transport_error_raises_upstream(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        with PrometheusClient(PROM_URL) as client:
            with pytest.raises(UpstreamQueryError):
                client.query("up")

    @respx.mock
    def test_http_error_raises_upstream(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(return_value=httpx.Response(503))
        with PrometheusClient(PROM_URL) as client:
            with pytest.raises(UpstreamQueryError):
                client.query("up")

    @respx.mock
    def test_error_status_raises_upstream(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(
                200,
                json={"status": "error", "errorType": "bad_data", "error": "parse error"},
            )
        )
        with PrometheusClient(PROM_URL) as client:
            with pytest.raises(UpstreamQueryError, match="bad_data"):
                client.query("sum(")

    @respx.mock
    def test_non_json_body_raises_malformed(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(200, text="<html>proxy</html>")
        )
        with PrometheusClient(PROM_URL) as client:
            with pytest.raises(MalformedResponse):
                client.query("up")


class TestPrometheusClientClusterCosts:
    @respx.mock
    def test_fetches_three_series(self) -> "None":
        route = respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            side_effect=[
                httpx.Response(200, json=_vector("100")),
                httpx.Response(200, json=_vector("50")),
                httpx.Response(200, json=_vector("5")),
            ]
        )
        with PrometheusClient(PROM_URL) as client:
            totals = client.cluster_costs("24h", "1d")

        assert totals.cpu_cost == [[1700000000.0, "100"]]
        assert totals.mem_cost == [[1700000000.0, "50"]]
        assert totals.storage_cost == [[1700000000.0, "5"]]

        assert route.call_count == 3
        queries = [call.request.url.params["query"] for call in route.calls]
        assert "node_cpu_hourly_cost[24h] offset 1d" in queries[0]
        assert "node_ram_hourly_cost[24h] offset 1d" in queries[1]
        assert "pv_hourly_cost[24h] offset 1d" in queries[2]

    @respx.mock
    def test_omits_offset_when_empty(self) -> "None":
        route = respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(200, json=_vector("1"))
        )
        with PrometheusClient(PROM_URL) as client:
            client.cluster_costs("6h", "")
        for call in route.calls:
            assert "offset" not in call.request.url.params["query"]

    @respx.mock
    def test_bad_sample_raises_malformed(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": "success",
                    "data": {"resultType": "vector", "result": [{"metric": {}}]},
                },
            )
        )
        with PrometheusClient(PROM_URL) as client:
            with pytest.raises(MalformedResponse):
                client.cluster_costs("24h", "")
