"""Recognition parameters with host defaults and YAML persistence.

Values left unset fall back to the host settings. Values outside their valid
range are replaced by the same defaults and a warning is logged; a bad
setting never stops recognition.

Example YAML:

    min_hold_duration: 0.1
    max_hold_duration: 2.0
    accuracy_percent: 80
    fit_method: diameter          # diameter | three_point | radial
    band_width_rule: standard     # standard | legacy_wide
    duplicate_policy: consecutive # keep | consecutive | any
    requires_trigger: true
    host:
      default_hold_time: 0.4
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from circle_gesture.buffer import DuplicatePolicy
from circle_gesture.geometry import BandWidthRule, FitMethod

logger = logging.getLogger("circle_gesture.config")


def _is_positive(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real) and not isinstance(value, bool)
        and math.isfinite(value) and value > 0
    )


def _is_percent(value: Any) -> bool:
    return _is_positive(value) and value <= 100


@dataclass(frozen=True)
class HostSettings:
    """Defaults owned by the host input layer.

    Invalid values fall back to the built-in defaults with a warning, so the
    fallbacks handed to RecognitionParameters are always in range.
    """
    default_hold_time: float = 0.4
    default_max_hold_time: float = 2.0
    default_accuracy_percent: float = 80.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            valid = _is_percent(value) if f.name == "default_accuracy_percent" else _is_positive(value)
            if not valid:
                logger.warning("host %s %r is invalid, using %s", f.name, value, f.default)
                value = f.default
            object.__setattr__(self, f.name, float(value))
        if self.default_hold_time > self.default_max_hold_time:
            logger.warning(
                "host default_hold_time %.3f exceeds default_max_hold_time %.3f, clamping",
                self.default_hold_time, self.default_max_hold_time,
            )
            object.__setattr__(self, "default_hold_time", self.default_max_hold_time)


DEFAULT_HOST_SETTINGS = HostSettings()


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Enum, name: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning("Unknown %s %r, using %s", name, value, default.value)
        return default


@dataclass(frozen=True)
class RecognitionParameters:
    """Settings for one recognizer. Fixed for the lifetime of an attempt."""
    min_hold_duration: Optional[float] = None
    max_hold_duration: Optional[float] = None
    accuracy_percent: Optional[float] = None
    fit_method: FitMethod = FitMethod.DIAMETER
    band_width_rule: BandWidthRule = BandWidthRule.STANDARD
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.CONSECUTIVE
    requires_trigger: bool = False
    host: HostSettings = field(default=DEFAULT_HOST_SETTINGS, compare=False)

    def __post_init__(self):
        host = self.host
        set_ = object.__setattr__

        min_hold = self._duration_or_default(
            "min_hold_duration", self.min_hold_duration, host.default_hold_time)
        max_hold = self._duration_or_default(
            "max_hold_duration", self.max_hold_duration, host.default_max_hold_time)
        if min_hold > max_hold:
            logger.warning(
                "min_hold_duration %.3f exceeds max_hold_duration %.3f, clamping",
                min_hold, max_hold,
            )
            min_hold = max_hold
        set_(self, "min_hold_duration", float(min_hold))
        set_(self, "max_hold_duration", float(max_hold))

        accuracy = self.accuracy_percent
        if accuracy is None:
            accuracy = host.default_accuracy_percent
        elif not _is_percent(accuracy):
            logger.warning(
                "accuracy_percent %r outside (0, 100], using %.1f",
                accuracy, host.default_accuracy_percent,
            )
            accuracy = host.default_accuracy_percent
        set_(self, "accuracy_percent", float(accuracy))

        set_(self, "fit_method", _coerce_enum(
            FitMethod, self.fit_method, FitMethod.DIAMETER, "fit_method"))
        set_(self, "band_width_rule", _coerce_enum(
            BandWidthRule, self.band_width_rule, BandWidthRule.STANDARD, "band_width_rule"))
        set_(self, "duplicate_policy", _coerce_enum(
            DuplicatePolicy, self.duplicate_policy, DuplicatePolicy.CONSECUTIVE, "duplicate_policy"))
        set_(self, "requires_trigger", bool(self.requires_trigger))

    @staticmethod
    def _duration_or_default(name: str, value: Any, default: float) -> float:
        if value is None:
            return default
        if not _is_positive(value):
            logger.warning("%s %r must be > 0, using %.3f", name, value, default)
            return default
        return value

    def to_dict(self) -> dict:
        return {
            "min_hold_duration": self.min_hold_duration,
            "max_hold_duration": self.max_hold_duration,
            "accuracy_percent": self.accuracy_percent,
            "fit_method": self.fit_method.value,
            "band_width_rule": self.band_width_rule.value,
            "duplicate_policy": self.duplicate_policy.value,
            "requires_trigger": self.requires_trigger,
            "host": asdict(self.host),
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecognitionParameters:
        host_data = data.get("host") or {}
        host = HostSettings(**{
            k: v for k, v in host_data.items() if k in HostSettings.__dataclass_fields__
        })
        return cls(
            min_hold_duration=data.get("min_hold_duration"),
            max_hold_duration=data.get("max_hold_duration"),
            accuracy_percent=data.get("accuracy_percent"),
            fit_method=data.get("fit_method", FitMethod.DIAMETER),
            band_width_rule=data.get("band_width_rule", BandWidthRule.STANDARD),
            duplicate_policy=data.get("duplicate_policy", DuplicatePolicy.CONSECUTIVE),
            requires_trigger=data.get("requires_trigger", False),
            host=host,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> RecognitionParameters:
        """Load parameters from a YAML file. An empty file gives the defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
