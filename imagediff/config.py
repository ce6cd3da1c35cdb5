# imagediff/config.py
"""
Pipeline configuration value object and request-key mapping.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional
import numbers

from imagediff.errors import ConfigurationError

# camelCase request keys -> DiffConfig fields
REQUEST_KEYS = {
    "threshold": "threshold",
    "blurRadius": "blur_radius",
    "useBlockComparison": "use_block_comparison",
    "blockSize": "block_size",
    "minRegionSize": "min_region_size",
    "useFlexibleMatching": "use_flexible_matching",
    "flexibleSensitivity": "flexible_sensitivity",
    "dilateBorder": "dilate_border",
}


@dataclass(frozen=True)
class DiffConfig:
    threshold: float = 0.1
    blur_radius: int = 0
    use_block_comparison: bool = False
    # Required when use_block_comparison is set.
    block_size: Optional[int] = None
    min_region_size: int = 0
    use_flexible_matching: bool = False
    flexible_sensitivity: float = 0.8
    # Off keeps edge rows/columns of the dilated mask at zero.
    dilate_border: bool = False

    @classmethod
    def from_dict(cls, settings: Mapping[str, Any]) -> "DiffConfig":
        """
        Build a config from request or preset settings. Accepts both the
        camelCase request keys and the field names; absent keys fall back to
        the defaults and unrelated keys (UI state) are ignored.
        """
        names = {f.name for f in fields(cls)}
        values = {}
        for key, value in settings.items():
            name = REQUEST_KEYS.get(key, key)
            if name in names and value is not None:
                values[name] = value
        return cls(**values)

    def to_dict(self) -> dict:
        return {key: getattr(self, name) for key, name in REQUEST_KEYS.items()}

    def validate(self) -> "DiffConfig":
        _require_positive_number("threshold", self.threshold)
        _require_int("blurRadius", self.blur_radius, minimum=0)
        _require_int("minRegionSize", self.min_region_size, minimum=0)
        if self.use_block_comparison:
            if self.block_size is None:
                raise ConfigurationError("blockSize is required when block comparison is enabled")
            _require_int("blockSize", self.block_size, minimum=1)
        if self.use_flexible_matching:
            _require_positive_number("flexibleSensitivity", self.flexible_sensitivity)
        return self


def _require_positive_number(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if not value > 0:
        raise ConfigurationError(f"{name} must be greater than 0, got {value!r}")


def _require_int(name, value, minimum):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value!r}")
