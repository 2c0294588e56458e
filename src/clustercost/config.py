import os
from dataclasses import dataclass, field

from clustercost.logging import setup_logging
from clustercost.models import AggregationOptions
from clustercost.provider.custom import FilePricingProvider
from clustercost.sharing import SharingPolicy, new_sharing_policy

_TRUE_VALUES = ("1", "true", "yes", "on")


def _split(value: "str") -> "list[str]":
    return [part.strip() for part in value.split(",") if part.strip()]


def _flag(value: "str") -> "bool":
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Config:
    # passed to setup_logging by configure_logging
    log_level: "str" = "info"
    prometheus_url: "str" = "http://localhost:9090"

    custom_pricing_enabled: "bool" = False
    custom_pricing_path: "str" = ""

    # fraction between 0 and 1
    discount: "float" = 0.0
    # "hourly", "daily", "monthly" or "" for cumulative cost
    rate: "str" = ""

    share_resources: "bool" = False
    shared_namespaces: "list[str]" = field(default_factory=list)
    # parallel lists: label name i must equal label value i
    shared_label_names: "list[str]" = field(default_factory=list)
    shared_label_values: "list[str]" = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            log_level=os.environ.get("CLUSTERCOST_LOG_LEVEL", "info"),
            prometheus_url=os.environ.get("PROMETHEUS_URL", "http://localhost:9090"),
            custom_pricing_enabled=_flag(os.environ.get("CUSTOM_PRICING_ENABLED", "")),
            custom_pricing_path=os.environ.get("CUSTOM_PRICING_PATH", ""),
            discount=float(os.environ.get("DISCOUNT", "0") or 0),
            rate=os.environ.get("RATE", ""),
            share_resources=_flag(os.environ.get("SHARE_RESOURCES", "")),
            shared_namespaces=_split(os.environ.get("SHARED_NAMESPACES", "")),
            shared_label_names=_split(os.environ.get("SHARED_LABEL_NAMES", "")),
            shared_label_values=_split(os.environ.get("SHARED_LABEL_VALUES", "")),
        )

    def sharing_policy(self) -> "SharingPolicy":
        return new_sharing_policy(
            self.share_resources,
            self.shared_namespaces,
            self.shared_label_names,
            self.shared_label_values,
        )

    def aggregation_options(
        self,
        expected_sample_count: "int" = 0,
        idle_coefficient: "float" = 1.0,
        include_time_series: "bool" = False,
    ) -> "AggregationOptions":
        return AggregationOptions(
            expected_sample_count=expected_sample_count,
            discount=self.discount,
            idle_coefficient=idle_coefficient,
            include_time_series=include_time_series,
            rate_unit=self.rate,
            sharing_policy=self.sharing_policy(),
        )

    def pricing_provider(self) -> "FilePricingProvider":
        # custom pricing without a file to read stays off
        return FilePricingProvider(
            self.custom_pricing_path,
            enabled=self.custom_pricing_enabled and bool(self.custom_pricing_path),
        )

    def configure_logging(self) -> "None":
        setup_logging(self.log_level)
