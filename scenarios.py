"""
What-if overlays.

Overrides are applied to a deep copy of the household, so the caller's record
is never touched and applying the same overrides twice gives equal results.
Paths are dotted attribute names; list elements are addressed by their ``id``
(or ``person_id``) or by integer index, e.g.::

    {"retirement.withdrawal_rate": 0.035,
     "persons.p1.planned_retirement_age": 58,
     "accounts.0.current_value": 120_000}
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from config import DEFAULTS

logger = logging.getLogger(__name__)


class ScenarioPathError(KeyError):
    """Override path does not name a field of the household."""


@dataclass
class ScenarioDelta:
    base: float
    scenario: float
    absolute: float
    percent: Optional[float]  # None when the base is zero ("n/a")

    def is_changed(self, epsilon: float = DEFAULTS["scenario_epsilon"]) -> bool:
        return abs(self.absolute) > epsilon


@dataclass
class ScenarioOverlay:
    name: str
    overrides: Dict[str, Any] = field(default_factory=dict)
    market_shock_pct: Optional[float] = None  # e.g. -0.30 for a 30% crash

    def apply(self, household):
        effective = copy.deepcopy(household)
        if self.market_shock_pct is not None:
            for acc in effective.accounts:
                acc.current_value = max(0.0, acc.current_value * (1 + self.market_shock_pct))
        return _apply_in_place(effective, self.overrides)


def _find_index(items: List[Any], key: str, path: str) -> int:
    """Position of the element whose id (or person_id) is ``key``, else ``key`` as an index."""
    for i, item in enumerate(items):
        ident = getattr(item, "id", None)
        if ident is None:
            ident = getattr(item, "person_id", None)
        if ident == key:
            return i
    if key.lstrip("-").isdigit():
        index = int(key)
        if -len(items) <= index < len(items):
            return index
    raise ScenarioPathError(f"no element {key!r} in {path!r}")


def _step(obj, part: str, path: str):
    if isinstance(obj, list):
        return obj[_find_index(obj, part, path)]
    if isinstance(obj, dict):
        if part not in obj:
            raise ScenarioPathError(f"unknown key {part!r} in {path!r}")
        return obj[part]
    if not hasattr(obj, "__dataclass_fields__") or part not in obj.__dataclass_fields__:
        raise ScenarioPathError(f"unknown field {part!r} in {path!r}")
    return getattr(obj, part)


def _apply_in_place(household, overrides: Mapping[str, Any]):
    for path, value in overrides.items():
        parts = path.split(".")
        target = household
        for part in parts[:-1]:
            target = _step(target, part, path)
        last = parts[-1]
        if isinstance(target, list):
            target[_find_index(target, last, path)] = copy.deepcopy(value)
        elif isinstance(target, dict):
            target[last] = copy.deepcopy(value)
        else:
            _step(target, last, path)  # validates the field name
            setattr(target, last, copy.deepcopy(value))
        logger.debug("override %s = %r", path, value)
    return household


def apply_overrides(household, overrides: Mapping[str, Any]):
    """Effective household with ``overrides`` applied; the input is never mutated."""
    return _apply_in_place(copy.deepcopy(household), overrides)


def diff(base_metric: float, scenario_metric: float) -> ScenarioDelta:
    absolute = scenario_metric - base_metric
    percent = absolute / abs(base_metric) * 100 if base_metric != 0 else None
    return ScenarioDelta(base=base_metric, scenario=scenario_metric,
                         absolute=absolute, percent=percent)


def compare(household, overlays: List[ScenarioOverlay],
            metric_fn: Callable[[Any], float]) -> Dict[str, ScenarioDelta]:
    """
    overlays: list of ScenarioOverlay
    returns: dict name -> delta of metric_fn(scenario) against metric_fn(base)
    """
    base = metric_fn(household)
    return {o.name: diff(base, metric_fn(o.apply(household))) for o in overlays}
