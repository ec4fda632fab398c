# rideweather/rulebook.py
"""
Single source of truth for hazard rules and rating bands.

This module is the ONLY place that reads hazard_rulebook.yml. It resolves
per-unit-system thresholds (with rider overrides), evaluates declarative
`when` clauses and renders rule text. Classifiers and scorers go through it
so that thresholds stay data rather than code.
"""
from __future__ import annotations

import functools
import logging
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml

from rideweather.core.models import HazardTier, SafetyLevel, UnitSystem, Visibility
from rideweather.utils.env import rulebook_path_override
from rideweather.utils.error_handling import RulebookError

logger = logging.getLogger(__name__)

# ---------- Data Models ----------

@dataclass(frozen=True)
class HazardRule:
    """One row of a tier's ordered rule table."""
    rule_id: str
    tier: HazardTier
    hazard: str
    severity: float
    title: str
    description: str
    recommendation: str
    when: Mapping[str, Any]

    def render(self, context: Mapping[str, Any]) -> Tuple[str, str, str]:
        """Format title, description and recommendation from a sample context."""
        try:
            return (
                self.title.format_map(context),
                self.description.format_map(context),
                self.recommendation.format_map(context),
            )
        except (KeyError, ValueError) as e:
            raise RulebookError(f"Rule '{self.rule_id}' has an invalid text template: {e}") from e


@dataclass(frozen=True)
class VisibilityBands:
    """Shares of ride distance that set the visibility rating."""
    poor_dark_share: float
    fair_dark_share: float
    excellent_golden_share: float

# ---------- Loader / SSOT ----------

_DEFAULT_RULEBOOK_PATH = pathlib.Path(__file__).parent / "config" / "hazard_rulebook.yml"

_COMPARISONS = {
    "gt": lambda a, b: a > b,
    "ge": lambda a, b: a >= b,
    "lt": lambda a, b: a < b,
    "le": lambda a, b: a <= b,
    "eq": lambda a, b: a == b,
}

@functools.lru_cache(maxsize=4)
def _load_yaml(path: Optional[str] = None) -> Dict[str, Any]:
    """Load rulebook YAML (cached). RIDEWEATHER_RULEBOOK overrides the packaged file."""
    p = pathlib.Path(path or rulebook_path_override() or _DEFAULT_RULEBOOK_PATH)
    logger.info(f"Loading hazard rulebook from {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise RulebookError(f"Rulebook {p} must be a mapping, got {type(data).__name__}")
    return data

@functools.lru_cache(maxsize=4)
def version(path: Optional[str] = None) -> str:
    """Get rulebook version."""
    data = _load_yaml(path)
    return str(data.get("version", "unversioned"))

@functools.lru_cache(maxsize=4)
def _rule_index(path: Optional[str] = None) -> Dict[HazardTier, Tuple[HazardRule, ...]]:
    """Build ordered rule tables per tier (cached)."""
    data = _load_yaml(path)
    rules_cfg = data.get("rules") or {}
    out: Dict[HazardTier, Tuple[HazardRule, ...]] = {}
    for tier in HazardTier:
        rows = []
        for cfg in rules_cfg.get(tier.value) or []:
            if "id" not in cfg or "when" not in cfg:
                raise RulebookError(f"Rule in tier '{tier}' is missing 'id' or 'when': {cfg}")
            rows.append(HazardRule(
                rule_id=str(cfg["id"]),
                tier=tier,
                hazard=str(cfg.get("hazard", cfg["id"])),
                severity=float(cfg.get("severity", 1)),
                title=str(cfg.get("title", cfg["id"])),
                description=str(cfg.get("description", "")),
                recommendation=str(cfg.get("recommendation", "")),
                when=cfg["when"],
            ))
        out[tier] = tuple(rows)
    logger.info(
        f"Loaded {sum(len(r) for r in out.values())} hazard rules from rulebook v{version(path)}"
    )
    return out

def get_rules(tier: HazardTier, path: Optional[str] = None) -> Tuple[HazardRule, ...]:
    return _rule_index(path).get(HazardTier(tier), ())

def get_thresholds(
    unit_system: UnitSystem,
    overrides: Optional[Mapping[str, float]] = None,
    path: Optional[str] = None,
) -> Dict[str, float]:
    """
    Thresholds for a unit system with rider overrides applied.

    Unknown override names are ignored with a warning so a typo cannot
    silently introduce a new, never-referenced threshold.
    """
    data = _load_yaml(path)
    table = (data.get("thresholds") or {}).get(UnitSystem(unit_system).value)
    if not table:
        raise RulebookError(f"Rulebook has no thresholds for unit system '{unit_system}'")
    thresholds = {str(k): float(v) for k, v in table.items()}
    for name, value in (overrides or {}).items():
        if name not in thresholds:
            logger.warning(f"Ignoring unknown hazard threshold override '{name}'")
            continue
        thresholds[name] = float(value)
    return thresholds

# ---------- Clause evaluation ----------

def _resolve(value: Any, thresholds: Mapping[str, float]) -> Any:
    if isinstance(value, str) and value.startswith("$"):
        name = value[1:]
        if name not in thresholds:
            raise RulebookError(f"Unknown threshold reference '{value}'")
        return thresholds[name]
    if isinstance(value, (list, tuple)):
        return [_resolve(v, thresholds) for v in value]
    return value

def _contains(haystack: Any, needles: Any) -> bool:
    text = str(haystack or "").lower()
    if isinstance(needles, str):
        needles = [needles]
    return any(str(n).lower() in text for n in needles)

def evaluate(clause: Mapping[str, Any], context: Mapping[str, Any], thresholds: Mapping[str, float]) -> bool:
    """
    Evaluate a declarative `when` clause against a sample context.

    A missing or None field never matches a comparison.
    """
    if "all" in clause:
        return all(evaluate(c, context, thresholds) for c in clause["all"])
    if "any" in clause:
        return any(evaluate(c, context, thresholds) for c in clause["any"])
    if "not" in clause:
        return not evaluate(clause["not"], context, thresholds)

    op = clause.get("op")
    actual = context.get(clause.get("field"))
    expected = _resolve(clause.get("value"), thresholds)
    if op == "contains":
        return _contains(actual, expected)
    if actual is None:
        return False
    if op == "between":
        low, high = expected
        return low <= actual <= high
    if op in _COMPARISONS:
        return _COMPARISONS[op](actual, expected)
    raise RulebookError(f"Unsupported operator '{op}' in clause {dict(clause)}")

def first_match(
    tier: HazardTier,
    context: Mapping[str, Any],
    thresholds: Mapping[str, float],
    path: Optional[str] = None,
) -> Optional[HazardRule]:
    """Top matching rule of a tier, or None."""
    for rule in get_rules(tier, path):
        if evaluate(rule.when, context, thresholds):
            return rule
    return None

# ---------- Rating bands ----------

@functools.lru_cache(maxsize=4)
def _safety_bands(path: Optional[str] = None) -> Tuple[Tuple[float, SafetyLevel], ...]:
    cfg = _load_yaml(path).get("safety_levels") or {
        "excellent": 85, "good": 70, "fair": 55, "poor": 30, "dangerous": 0,
    }
    bands = sorted(((float(v), SafetyLevel(k)) for k, v in cfg.items()), key=lambda b: b[0], reverse=True)
    return tuple(bands)

def classify_safety(score: float, path: Optional[str] = None) -> SafetyLevel:
    """
    Map a 0-100 safety score to its level.

    Uses lower-bound classification: the first band whose floor the score
    reaches wins; anything below every floor is dangerous.
    """
    for floor, level in _safety_bands(path):
        if score >= floor:
            return level
    return SafetyLevel.DANGEROUS

@functools.lru_cache(maxsize=4)
def visibility_bands(path: Optional[str] = None) -> VisibilityBands:
    cfg = _load_yaml(path).get("visibility") or {}
    return VisibilityBands(
        poor_dark_share=float(cfg.get("poor_dark_share", 0.5)),
        fair_dark_share=float(cfg.get("fair_dark_share", 0.25)),
        excellent_golden_share=float(cfg.get("excellent_golden_share", 0.3)),
    )

def classify_visibility(dark_share: float, golden_share: float, path: Optional[str] = None) -> Visibility:
    bands = visibility_bands(path)
    if dark_share > bands.poor_dark_share:
        return Visibility.POOR
    if dark_share > bands.fair_dark_share:
        return Visibility.FAIR
    if golden_share > bands.excellent_golden_share:
        return Visibility.EXCELLENT
    return Visibility.GOOD

def clear_caches() -> None:
    """Drop every cached rulebook view (after editing the YAML or env)."""
    for fn in (_load_yaml, version, _rule_index, _safety_bands, visibility_bands):
        if hasattr(fn, "cache_clear"):
            fn.cache_clear()

def iter_tiers() -> Iterable[HazardTier]:
    """Tiers in strict evaluation priority."""
    return (HazardTier.DANGEROUS, HazardTier.CAUTIONARY, HazardTier.OPTIMAL)
