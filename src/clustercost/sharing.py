from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Mapping

if TYPE_CHECKING:
    from clustercost.models import CostRecord

# kube-system is always split across groups
DEFAULT_SHARED_NAMESPACE = "kube-system"


@dataclass(frozen=True)
class SharingPolicy:
    """
    SharingPolicy decides which records are pooled as shared cost
    instead of being reported under their own group.

    A record is shared when its namespace is one of the shared
    namespaces, or when any label selector matches one of its
    labels exactly. kube-system is always a shared namespace.
    """

    enabled: "bool" = False
    shared_namespaces: "frozenset[str]" = field(default_factory=frozenset)
    label_selectors: "Mapping[str, str]" = field(default_factory=dict)

    def __post_init__(self) -> "None":
        # frozen, so go through object.__setattr__
        namespaces = frozenset(self.shared_namespaces) | {DEFAULT_SHARED_NAMESPACE}
        object.__setattr__(self, "shared_namespaces", namespaces)
        object.__setattr__(self, "label_selectors", dict(self.label_selectors))

    def is_shared(self, record: "CostRecord") -> "bool":
        if record.namespace in self.shared_namespaces:
            return True

        return any(
            name in record.labels and record.labels[name] == value
            for name, value in self.label_selectors.items()
        )


def is_shared(policy: "SharingPolicy", record: "CostRecord") -> "bool":
    return policy.is_shared(record)


def new_sharing_policy(
    enabled: "bool",
    namespaces: "Iterable[str]" = (),
    label_names: "Iterable[str]" = (),
    label_values: "Iterable[str]" = (),
) -> "SharingPolicy":
    """
    builds a SharingPolicy from parallel lists of label names
    and values, as they arrive from flags or query parameters.
    """
    names = list(label_names)
    values = list(label_values)
    if len(names) != len(values):
        raise ValueError(
            f"got {len(names)} shared label names but {len(values)} values"
        )

    return SharingPolicy(
        enabled=enabled,
        shared_namespaces=frozenset(ns for ns in namespaces if ns),
        label_selectors=dict(zip(names, values)),
    )
