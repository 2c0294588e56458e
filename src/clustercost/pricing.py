from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from clustercost.metrics import EngineMetrics
from clustercost.models import CostRecord, Vector
from clustercost.provider.base import PricingProvider
from clustercost.vectors import BUCKET_SECONDS, round_timestamp

logger = structlog.get_logger()

HOURS_PER_DAY = 24.0
HOURS_PER_MONTH = 730.0

BYTES_PER_GIB = 1024.0 * 1024.0 * 1024.0

# samples are stored at the hourly rate; these scale them to
# the requested output rate
_RATE_COEFFICIENTS: "dict[str, float]" = {
    "": 1.0,
    "hourly": 1.0,
    "daily": HOURS_PER_DAY,
    "monthly": HOURS_PER_MONTH,
}


@dataclass(frozen=True, slots=True)
class UnitPrices:
    """
    UnitPrices holds the price strings resolved for a record. They
    are parsed only when a series is priced with them, so a record
    never reports a bad price it does not use.
    """

    cpu: "str" = ""
    ram: "str" = ""
    gpu: "str" = ""
    storage: "str" = ""
    # when set, volumes are priced at storage instead of their own cost
    override_storage: "bool" = False


@dataclass(frozen=True, slots=True)
class PricedVectors:
    """
    PricedVectors holds the cost series of one record, one per
    dimension. Each resolved volume claim gets its own series.
    """

    cpu: "list[Vector]" = field(default_factory=list)
    ram: "list[Vector]" = field(default_factory=list)
    gpu: "list[Vector]" = field(default_factory=list)
    pvs: "list[list[Vector]]" = field(default_factory=list)
    network: "list[Vector]" = field(default_factory=list)


def rate_coefficient(rate_unit: "str") -> "float":
    return _RATE_COEFFICIENTS.get(rate_unit, 1.0)


def parse_price(
    raw: "str",
    resource: "str",
    metrics: "Optional[EngineMetrics]" = None,
) -> "float":
    """
    parses a price string. A price that does not parse is treated
    as zero so one bad price cannot abort a whole aggregation.
    """
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning("price_parse_failed", resource=resource, price=raw)
        if metrics is not None:
            metrics.inc_price_parse_failure(resource)
        return 0.0


def resolve_prices(
    pricing_provider: "PricingProvider",
    record: "CostRecord",
    metrics: "Optional[EngineMetrics]" = None,
) -> "UnitPrices":
    """
    picks the unit prices for a record. Node-reported prices are
    used unless the provider has custom pricing enabled and its
    configuration loads; then spot nodes get the spot rates and
    volumes get the custom storage rate.
    """
    node = record.node
    cpu, ram, gpu, storage = (
        node.vcpu_cost,
        node.ram_cost,
        node.gpu_cost,
        node.storage_cost,
    )

    custom_enabled = pricing_provider.custom_pricing_enabled()
    if custom_enabled:
        try:
            custom = pricing_provider.load_config()
        except Exception:
            logger.warning(
                "custom_pricing_load_failed",
                record=record.name,
                exc_info=True,
            )
            if metrics is not None:
                metrics.inc_pricing_config_failure()
        else:
            if node.is_spot:
                cpu, ram, gpu = custom.spot_cpu, custom.spot_ram, custom.spot_gpu
            else:
                cpu, ram, gpu = custom.cpu, custom.ram, custom.gpu
            storage = custom.storage

    return UnitPrices(
        cpu=cpu,
        ram=ram,
        gpu=gpu,
        storage=storage,
        override_storage=custom_enabled,
    )


def _price_series(
    values: "Sequence[Vector]",
    price: "str",
    resource: "str",
    scale: "float",
    metrics: "Optional[EngineMetrics]",
) -> "list[Vector]":
    # nothing to price, so the price is never parsed
    if not values:
        return []

    coefficient = parse_price(price, resource, metrics) * scale
    return [
        Vector(
            timestamp=round_timestamp(v.timestamp, BUCKET_SECONDS),
            value=v.value * coefficient,
        )
        for v in values
    ]


def price_record(
    pricing_provider: "PricingProvider",
    record: "CostRecord",
    rate_unit: "str",
    discount: "float",
    idle_coefficient: "float",
    metrics: "Optional[EngineMetrics]" = None,
) -> "PricedVectors":
    """
    turns a record's allocations into cost series:

      cost = value * unit price * (1 - discount) / idle_coefficient * rate

    RAM and volume values are converted from bytes to GiB first.
    Volumes are not discounted and network cost, which is priced
    upstream, passes through as is. idle_coefficient must not be
    zero. Only prices backing a non-empty series are parsed.
    """
    prices = resolve_prices(pricing_provider, record, metrics)
    rate = rate_coefficient(rate_unit)
    scale = (1 - discount) / idle_coefficient * rate
    pv_scale = 1 / BYTES_PER_GIB / idle_coefficient * rate

    pvs: "list[list[Vector]]" = []
    for claim in record.volume_claims:
        # unresolved claims are skipped, not priced at zero
        if claim.volume is None:
            continue

        pv_price = prices.storage if prices.override_storage else claim.volume.cost
        pvs.append(_price_series(claim.values, pv_price, "storage", pv_scale, metrics))

    return PricedVectors(
        cpu=_price_series(record.cpu_allocation, prices.cpu, "cpu", scale, metrics),
        ram=_price_series(
            record.ram_allocation, prices.ram, "ram", scale / BYTES_PER_GIB, metrics
        ),
        gpu=_price_series(record.gpu_request, prices.gpu, "gpu", scale, metrics),
        pvs=pvs,
        network=list(record.network_cost),
    )
