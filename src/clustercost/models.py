from dataclasses import dataclass, field
from typing import Any, Optional

from clustercost.sharing import SharingPolicy


@dataclass(frozen=True, slots=True)
class Vector:
    """
    Vector is a single (timestamp, value) sample of a
    usage or cost series.
    """

    # unix seconds; 0 means "no timestamp"
    timestamp: "float"
    value: "float"

    def to_dict(self) -> "dict[str, float]":
        return {"timestamp": self.timestamp, "value": self.value}


@dataclass(frozen=True, slots=True)
class NodePricing:
    """
    NodePricing holds the per-unit prices reported for the
    node a workload ran on. Prices are kept as the raw strings
    the node reported and parsed at pricing time.
    """

    # price per vCPU hour
    vcpu_cost: "str" = ""
    # price per GiB of RAM hour
    ram_cost: "str" = ""
    # price per GPU hour
    gpu_cost: "str" = ""
    # price per GiB of storage hour
    storage_cost: "str" = ""
    is_spot: "bool" = False


@dataclass(frozen=True, slots=True)
class PersistentVolume:
    name: "str"
    # price per GiB hour
    cost: "str" = ""


@dataclass(frozen=True, slots=True)
class VolumeClaim:
    """
    VolumeClaim is one persistent volume attached to a workload.
    Values are in bytes. A claim whose volume could not be
    resolved carries volume=None.
    """

    name: "str"
    values: "list[Vector]" = field(default_factory=list)
    volume: "Optional[PersistentVolume]" = None


@dataclass(frozen=True, slots=True)
class CostRecord:
    """
    CostRecord is the usage of a single workload over the
    query window, together with the metadata used to group it.
    """

    name: "str"
    namespace: "str"
    cluster_id: "str" = ""
    services: "list[str]" = field(default_factory=list)
    deployments: "list[str]" = field(default_factory=list)
    labels: "dict[str, str]" = field(default_factory=dict)
    node: "NodePricing" = field(default_factory=NodePricing)
    # cores
    cpu_allocation: "list[Vector]" = field(default_factory=list)
    cpu_request: "list[Vector]" = field(default_factory=list)
    # bytes
    ram_allocation: "list[Vector]" = field(default_factory=list)
    ram_request: "list[Vector]" = field(default_factory=list)
    # devices
    gpu_request: "list[Vector]" = field(default_factory=list)
    volume_claims: "list[VolumeClaim]" = field(default_factory=list)
    # already priced upstream
    network_cost: "list[Vector]" = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CustomPricing:
    """
    CustomPricing is the pricing configuration exposed by a
    pricing provider, overriding node-reported prices when
    custom pricing is enabled.
    """

    cpu: "str" = ""
    ram: "str" = ""
    gpu: "str" = ""
    storage: "str" = ""
    spot_cpu: "str" = ""
    spot_ram: "str" = ""
    spot_gpu: "str" = ""


@dataclass(frozen=True, slots=True)
class ClusterCostTotals:
    """
    ClusterCostTotals is the cluster-level monthly cost returned by
    a metrics client. Each field holds [timestamp, value] pairs, one
    per series in the query result.
    """

    cpu_cost: "list[list[Any]]"
    mem_cost: "list[list[Any]]"
    storage_cost: "list[list[Any]]"


@dataclass
class AggregationOptions:
    # number of samples expected in the window; used to turn
    # cumulative totals into a rate when data is incomplete
    expected_sample_count: "int" = 0
    # fraction by which to discount CPU, RAM and GPU cost
    discount: "float" = 0.0
    idle_coefficient: "float" = 1.0
    include_time_series: "bool" = False
    # "hourly", "daily", "monthly" or "" for cumulative cost
    rate_unit: "str" = ""
    sharing_policy: "Optional[SharingPolicy]" = None


# (attribute, output key) pairs of the optional series fields
_SERIES_FIELDS: "list[tuple[str, str]]" = [
    ("cpu_cost_vector", "cpuCostVector"),
    ("cpu_request_vector", "cpuRequestVector"),
    ("ram_cost_vector", "ramCostVector"),
    ("ram_request_vector", "ramRequestVector"),
    ("pv_cost_vector", "pvCostVector"),
    ("pv_request_vector", "pvRequestVector"),
    ("gpu_cost_vector", "gpuCostVector"),
    ("network_cost_vector", "networkCostVector"),
]


@dataclass
class Aggregation:
    """
    Aggregation is the summed cost of every record routed to one
    group key. Series fields are filled while records are merged
    and cleared at the end of the pass unless time series output
    was requested; the scalar costs are always kept.
    """

    aggregator: "str"
    subfields: "list[str]"
    environment: "str"
    cluster: "Optional[str]" = None

    # running allocation totals, never serialized
    cpu_allocation: "list[Vector]" = field(default_factory=list)
    ram_allocation: "list[Vector]" = field(default_factory=list)
    gpu_allocation: "list[Vector]" = field(default_factory=list)

    cpu_cost_vector: "list[Vector]" = field(default_factory=list)
    cpu_request_vector: "list[Vector]" = field(default_factory=list)
    ram_cost_vector: "list[Vector]" = field(default_factory=list)
    ram_request_vector: "list[Vector]" = field(default_factory=list)
    pv_cost_vector: "list[Vector]" = field(default_factory=list)
    pv_request_vector: "list[Vector]" = field(default_factory=list)
    gpu_cost_vector: "list[Vector]" = field(default_factory=list)
    network_cost_vector: "list[Vector]" = field(default_factory=list)

    cpu_cost: "float" = 0.0
    ram_cost: "float" = 0.0
    gpu_cost: "float" = 0.0
    pv_cost: "float" = 0.0
    network_cost: "float" = 0.0
    shared_cost: "float" = 0.0
    total_cost: "float" = 0.0

    def clear_series(self) -> "None":
        """
        drops the per-dimension series, keeping scalars.
        """
        for attr, _ in _SERIES_FIELDS:
            setattr(self, attr, [])

    def to_dict(self) -> "dict[str, Any]":
        """
        renders the aggregation in its wire shape. The cluster and
        series keys are omitted when empty.
        """
        out: "dict[str, Any]" = {
            "aggregation": self.aggregator,
            "subfields": list(self.subfields),
            "environment": self.environment,
        }
        if self.cluster:
            out["cluster"] = self.cluster

        for attr, key in _SERIES_FIELDS:
            series = getattr(self, attr)
            if series:
                out[key] = [v.to_dict() for v in series]

        out.update(
            {
                "cpuCost": self.cpu_cost,
                "ramCost": self.ram_cost,
                "gpuCost": self.gpu_cost,
                "pvCost": self.pv_cost,
                "networkCost": self.network_cost,
                "sharedCost": self.shared_cost,
                "totalCost": self.total_cost,
            }
        )
        return out
