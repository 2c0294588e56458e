import time
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence, Union

import structlog

from clustercost.errors import UnknownGroupField
from clustercost.metrics import EngineMetrics
from clustercost.models import Aggregation, AggregationOptions, CostRecord
from clustercost.pricing import PricedVectors, price_record
from clustercost.provider.base import PricingProvider
from clustercost.vectors import add_vectors, total_vector

logger = structlog.get_logger()


class GroupField(str, Enum):
    CLUSTER = "cluster"
    NAMESPACE = "namespace"
    SERVICE = "service"
    DEPLOYMENT = "deployment"
    LABEL = "label"


# a grouping function maps a record to its group key, or None
# when the record has no key for that field
GroupingFunc = Callable[[CostRecord, Sequence[str]], Optional[str]]


def _by_cluster(record: "CostRecord", subfields: "Sequence[str]") -> "Optional[str]":
    return record.cluster_id


def _by_namespace(record: "CostRecord", subfields: "Sequence[str]") -> "Optional[str]":
    return record.namespace


def _by_service(record: "CostRecord", subfields: "Sequence[str]") -> "Optional[str]":
    return record.services[0] if record.services else None


def _by_deployment(record: "CostRecord", subfields: "Sequence[str]") -> "Optional[str]":
    return record.deployments[0] if record.deployments else None


def _by_label(record: "CostRecord", subfields: "Sequence[str]") -> "Optional[str]":
    # first subfield present wins, in the caller's order
    for name in subfields:
        if name in record.labels:
            return record.labels[name]
    return None


GROUPING_FUNCS: "dict[GroupField, GroupingFunc]" = {
    GroupField.CLUSTER: _by_cluster,
    GroupField.NAMESPACE: _by_namespace,
    GroupField.SERVICE: _by_service,
    GroupField.DEPLOYMENT: _by_deployment,
    GroupField.LABEL: _by_label,
}


def parse_group_field(value: "Union[str, GroupField]") -> "GroupField":
    try:
        return GroupField(value)
    except ValueError:
        raise UnknownGroupField(f"cannot aggregate by {value!r}") from None


def _priced_total(priced: "PricedVectors", include_network: "bool") -> "float":
    total = (
        total_vector(priced.cpu)
        + total_vector(priced.ram)
        + total_vector(priced.gpu)
        + sum(total_vector(pv) for pv in priced.pvs)
    )
    if include_network:
        total += total_vector(priced.network)
    return total


def _merge_record(
    agg: "Aggregation",
    record: "CostRecord",
    priced: "PricedVectors",
) -> "None":
    agg.cpu_allocation = add_vectors(record.cpu_allocation, agg.cpu_allocation)
    agg.ram_allocation = add_vectors(record.ram_allocation, agg.ram_allocation)
    agg.gpu_allocation = add_vectors(record.gpu_request, agg.gpu_allocation)

    agg.cpu_request_vector = add_vectors(record.cpu_request, agg.cpu_request_vector)
    agg.ram_request_vector = add_vectors(record.ram_request, agg.ram_request_vector)
    for claim in record.volume_claims:
        if claim.volume is not None:
            agg.pv_request_vector = add_vectors(claim.values, agg.pv_request_vector)

    agg.cpu_cost_vector = add_vectors(priced.cpu, agg.cpu_cost_vector)
    agg.ram_cost_vector = add_vectors(priced.ram, agg.ram_cost_vector)
    agg.gpu_cost_vector = add_vectors(priced.gpu, agg.gpu_cost_vector)
    agg.network_cost_vector = add_vectors(priced.network, agg.network_cost_vector)
    # every volume folds into the one pv series
    for pv in priced.pvs:
        agg.pv_cost_vector = add_vectors(agg.pv_cost_vector, pv)


def aggregate(
    records: "Iterable[CostRecord]",
    group_field: "Union[str, GroupField]",
    subfields: "Sequence[str]",
    pricing_provider: "PricingProvider",
    options: "AggregationOptions",
    metrics: "Optional[EngineMetrics]" = None,
) -> "dict[str, Aggregation]":
    """
    aggregates cost records by field; e.g. namespace, cluster,
    service, deployment or label. Grouping by label requires
    subfields naming the labels to group by, in priority order.

    Records matched by the options' sharing policy are not grouped:
    their cost is pooled and split evenly across all groups as
    shared cost. When a rate unit is set, cumulative costs are
    divided by the expected sample count to report a rate.
    """
    field = parse_group_field(group_field)
    key_for = GROUPING_FUNCS[field]
    subfields = list(subfields)
    started = time.monotonic()

    rate = options.rate_unit
    discount = options.discount
    idle_coefficient = options.idle_coefficient
    if idle_coefficient == 0:
        logger.warning("idle_coefficient_zero", fallback=1.0)
        idle_coefficient = 1.0
    policy = options.sharing_policy

    aggregations: "dict[str, Aggregation]" = {}
    # running cost of records split across all groups rather
    # than reported on their own
    shared_resource_cost = 0.0
    shared_count = 0

    for record in records:
        if policy is not None and policy.enabled and policy.is_shared(record):
            priced = price_record(
                pricing_provider, record, rate, discount, idle_coefficient, metrics
            )
            shared_resource_cost += _priced_total(priced, include_network=True)
            shared_count += 1
            continue

        key = key_for(record, subfields)
        if key is None:
            continue

        agg = aggregations.get(key)
        if agg is None:
            agg = Aggregation(
                aggregator=field.value,
                subfields=subfields,
                environment=key,
                cluster=record.cluster_id if field is GroupField.CLUSTER else None,
            )
            aggregations[key] = agg

        priced = price_record(
            pricing_provider, record, rate, discount, idle_coefficient, metrics
        )
        _merge_record(agg, record, priced)

    sample_count = options.expected_sample_count
    for agg in aggregations.values():
        agg.cpu_cost = total_vector(agg.cpu_cost_vector)
        agg.ram_cost = total_vector(agg.ram_cost_vector)
        agg.gpu_cost = total_vector(agg.gpu_cost_vector)
        agg.pv_cost = total_vector(agg.pv_cost_vector)
        agg.network_cost = total_vector(agg.network_cost_vector)
        agg.shared_cost = shared_resource_cost / len(aggregations)

        if rate:
            logger.debug(
                "aggregation_rate_scaled",
                environment=agg.environment,
                rate=rate,
                sample_count=sample_count,
            )
            if sample_count > 0:
                agg.cpu_cost /= sample_count
                agg.ram_cost /= sample_count
                agg.gpu_cost /= sample_count
                agg.pv_cost /= sample_count
                agg.network_cost /= sample_count
                agg.shared_cost /= sample_count

        agg.total_cost = (
            agg.cpu_cost
            + agg.ram_cost
            + agg.gpu_cost
            + agg.pv_cost
            + agg.network_cost
            + agg.shared_cost
        )

        if not options.include_time_series:
            agg.clear_series()

    duration = time.monotonic() - started
    logger.info(
        "aggregation_complete",
        field=field.value,
        groups=len(aggregations),
        shared_records=shared_count,
        shared_cost=shared_resource_cost,
    )
    if metrics is not None:
        metrics.observe_aggregation(
            field.value, duration, len(aggregations), shared_count
        )

    return aggregations
