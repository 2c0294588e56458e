class ClusterCostError(Exception):
    """
    base class for errors raised by the cost engine.
    """


class InvalidDuration(ClusterCostError, ValueError):
    """
    raised when a window or offset string is not a valid duration.
    """


class UpstreamQueryError(ClusterCostError):
    """
    raised when the metrics backend cannot be queried. The engine
    does not retry; bounding and retrying the call is left to the
    client instance.
    """


class MalformedResponse(ClusterCostError):
    """
    raised when the metrics backend answers with values that
    cannot be read as numbers.
    """


class PricingConfigUnavailable(ClusterCostError):
    """
    raised by pricing providers when their configuration cannot be
    loaded. The pricing resolver falls back to node prices.
    """


class UnknownGroupField(ClusterCostError, ValueError):
    """
    raised when records are aggregated by an unsupported field.
    """
