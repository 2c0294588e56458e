import json
from pathlib import Path
from typing import Any, Union

import structlog

from clustercost.errors import PricingConfigUnavailable
from clustercost.models import CustomPricing

logger = structlog.get_logger()

# document key -> CustomPricing field
_PRICE_KEYS: "dict[str, str]" = {
    "CPU": "cpu",
    "RAM": "ram",
    "GPU": "gpu",
    "storage": "storage",
    "spotCPU": "spot_cpu",
    "spotRAM": "spot_ram",
    "spotGPU": "spot_gpu",
}


def pricing_from_dict(data: "dict[str, Any]") -> "CustomPricing":
    """
    reads custom prices from a pricing document. Values may be
    strings or numbers; missing keys are left empty.
    """
    return CustomPricing(
        **{
            attr: str(data[key])
            for key, attr in _PRICE_KEYS.items()
            if data.get(key) is not None
        }
    )


class FilePricingProvider:
    """
    FilePricingProvider implements the PricingProvider protocol
    with prices read from a JSON file. The file is re-read on every
    load so edits are picked up without a restart.
    """

    def __init__(self, path: "Union[str, Path]", enabled: "bool" = True) -> "None":
        self._path = Path(path)
        self._enabled = enabled

    def custom_pricing_enabled(self) -> "bool":
        return self._enabled

    def load_config(self) -> "CustomPricing":
        try:
            data = json.loads(self._path.read_text())
        except (OSError, ValueError) as e:
            raise PricingConfigUnavailable(
                f"cannot read custom pricing from {self._path}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise PricingConfigUnavailable(
                f"custom pricing in {self._path} is not an object"
            )

        logger.debug("custom_pricing_loaded", path=str(self._path))
        return pricing_from_dict(data)
