import re
from datetime import timedelta
from typing import Iterable, Optional

import structlog

from clustercost.errors import InvalidDuration, MalformedResponse
from clustercost.metrics import EngineMetrics
from clustercost.models import CostRecord
from clustercost.pricing import HOURS_PER_MONTH, price_record
from clustercost.provider.base import MetricsClient, PricingProvider
from clustercost.vectors import total_vector

logger = structlog.get_logger()

_UNIT_SECONDS: "dict[str, float]" = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d)")


def parse_duration(value: "str") -> "timedelta":
    """
    parses a duration such as "24h", "1h30m" or "1.5d": an optional
    sign followed by one or more number-unit pairs. A bare "0" is
    accepted.
    """
    text = value
    sign = 1.0
    if text[:1] in ("+", "-"):
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise InvalidDuration(f"invalid duration {value!r}")

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise InvalidDuration(f"invalid duration {value!r}")
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    try:
        return timedelta(seconds=sign * seconds)
    except OverflowError as e:
        raise InvalidDuration(f"duration {value!r} is out of range") from e


def _first_value(samples: "list", name: "str") -> "float":
    """
    reads the value of the first [timestamp, value] pair.
    """
    try:
        return float(samples[0][1])
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise MalformedResponse(f"unreadable {name} cost in {samples!r}") from e


def compute_idle_coefficient(
    records: "Iterable[CostRecord]",
    metrics_client: "MetricsClient",
    pricing_provider: "PricingProvider",
    discount: "float",
    window: "str",
    offset: "str" = "",
    metrics: "Optional[EngineMetrics]" = None,
) -> "float":
    """
    computes the ratio of cost attributed to containers over the
    window to the cost of the whole cluster over the same window.
    Dividing container costs by it spreads idle capacity across
    workloads.

    Returns 0 when the cluster cost is zero.
    """
    window_duration = parse_duration(window)
    if window_duration <= timedelta(0):
        raise InvalidDuration(f"window must be positive, got {window!r}")

    totals = metrics_client.cluster_costs(window, offset)
    cpu_cost = _first_value(totals.cpu_cost, "cpu")
    mem_cost = _first_value(totals.mem_cost, "memory")
    storage_cost = _first_value(totals.storage_cost, "storage")

    total_cluster_cost = (cpu_cost + mem_cost) * (1 - discount) + storage_cost
    if total_cluster_cost == 0:
        logger.warning(
            "idle_coefficient_zero_cluster_cost",
            window=window,
            offset=offset,
        )
        return 0.0

    # cluster costs come back as monthly rates
    window_hours = window_duration.total_seconds() / 3600
    total_cluster_cost_over_window = total_cluster_cost / HOURS_PER_MONTH * window_hours

    total_container_cost = 0.0
    for record in records:
        priced = price_record(pricing_provider, record, "", discount, 1.0, metrics)
        total_container_cost += total_vector(priced.cpu)
        total_container_cost += total_vector(priced.ram)
        total_container_cost += total_vector(priced.gpu)
        for pv in priced.pvs:
            total_container_cost += total_vector(pv)

    coefficient = total_container_cost / total_cluster_cost_over_window
    logger.info(
        "idle_coefficient_computed",
        window=window,
        offset=offset,
        cluster_cost=total_cluster_cost_over_window,
        container_cost=total_container_cost,
        coefficient=coefficient,
    )
    if metrics is not None:
        metrics.set_idle_coefficient(coefficient)

    return coefficient
