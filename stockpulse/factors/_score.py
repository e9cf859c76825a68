"""Factor score containers and availability-aware composite scoring."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from stockpulse.factors._config import RiskFlag

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Component:
    """One named sub-score of a factor.

    Attributes
    ----------
    key : str
        Stable identifier.
    label : str
        Human-readable name.
    raw_value : float, str or None
        The domain feature (RSI, ratio, percent) before mapping, or
        ``None`` when the feature could not be computed.
    weight : float
        Weight in the factor formula; negative for penalty terms.
    contribution : float
        Signed points this component added to the factor value.
    """

    key: str
    label: str
    raw_value: float | str | None
    weight: float
    contribution: float


@dataclass(frozen=True)
class FactorScore:
    """Outcome of a single factor scorer.

    ``value`` is ``None`` exactly when the scorer's minimum-sample
    precondition failed.  A computed 50 is a legitimate neutral reading
    and is never used as a placeholder.

    Attributes
    ----------
    name : str
        Factor identifier.
    value : float or None
        Score in ``[0, 100]``, or ``None`` when unavailable.
    components : tuple[Component, ...]
        Ordered sub-score breakdown.
    reasons : tuple[str, ...]
        Ordered explanations; never empty.
    risk_flags : frozenset[RiskFlag]
        Informational risk tags.
    metrics : Mapping[str, float | str | None]
        Auxiliary features kept for audit and downstream consumers.
    """

    name: str
    value: float | None
    components: tuple[Component, ...] = ()
    reasons: tuple[str, ...] = ()
    risk_flags: frozenset[RiskFlag] = frozenset()
    metrics: Mapping[str, float | str | None] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", tuple(self.components))
        object.__setattr__(self, "reasons", tuple(self.reasons))
        object.__setattr__(self, "risk_flags", frozenset(self.risk_flags))
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))
        if not self.reasons:
            fallback = "No data available." if self.value is None else "Neutral reading."
            object.__setattr__(self, "reasons", (fallback,))

    @property
    def available(self) -> bool:
        return self.value is not None

    def metric(self, key: str) -> float | None:
        """Numeric metric by key, ``None`` when absent or non-numeric."""
        value = self.metrics.get(key)
        return value if isinstance(value, (int, float)) else None

    def component(self, key: str) -> Component | None:
        for comp in self.components:
            if comp.key == key:
                return comp
        return None

    @classmethod
    def unavailable(
        cls,
        name: str,
        reason: str,
        risk_flags: Iterable[RiskFlag] = (),
        metrics: Mapping[str, float | str | None] | None = None,
    ) -> FactorScore:
        """Build the insufficient-data result of a scorer."""
        logger.debug("%s unavailable: %s", name, reason)
        return cls(
            name=name,
            value=None,
            reasons=(reason,),
            risk_flags=frozenset(risk_flags),
            metrics=metrics or {},
        )


def top_reasons(
    prioritized: Iterable[tuple[int, str]], limit: int = 3
) -> tuple[str, ...]:
    """Order reasons by priority, de-duplicate, keep the first ``limit``."""
    ordered = sorted(prioritized, key=lambda item: item[0])
    seen: dict[str, None] = {}
    for _, text in ordered:
        seen.setdefault(text, None)
    return tuple(seen)[:limit]


# ---------------------------------------------------------------------------
# Composite scoring
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompositeScore:
    """Weighted mean of factor scores over available factors only.

    Attributes
    ----------
    value : float or None
        ``sum(w_i * v_i) / sum(w_i)`` over available factors, ``None``
        when no weight is available.
    available_weight : float
        Denominator actually used.
    total_weight : float
        Sum of all supplied weights.
    used : tuple[str, ...]
        Names of contributing factors.
    dropped : tuple[str, ...]
        Names of unavailable factors excluded from the denominator.
    reasons : tuple[str, ...]
        One note per dropped factor.
    """

    value: float | None
    available_weight: float
    total_weight: float
    used: tuple[str, ...] = ()
    dropped: tuple[str, ...] = ()
    reasons: tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        return self.value is not None

    @property
    def coverage(self) -> float:
        """Share of the total weight backed by available factors."""
        if self.total_weight <= 0:
            return 0.0
        return self.available_weight / self.total_weight


def compute_composite_score(
    weighted: Iterable[tuple[FactorScore, float]],
) -> CompositeScore:
    """Combine factor scores, renormalising over the available ones.

    Unavailable factors (and non-finite values) are dropped from both
    numerator and denominator, so missing data never deflates the
    composite.  When nothing is available the composite is undefined
    (``None``), never zero.

    Parameters
    ----------
    weighted : iterable of (FactorScore, float)
        Factor scores with non-negative weights.

    Returns
    -------
    CompositeScore
        Renormalised composite with an audit of dropped factors.
    """
    numerator = 0.0
    available_weight = 0.0
    total_weight = 0.0
    used: list[str] = []
    dropped: list[str] = []

    for score, weight in weighted:
        if weight < 0:
            raise ValueError(f"composite weight must be non-negative, got {weight}")
        total_weight += weight
        if score.value is None or not math.isfinite(score.value):
            dropped.append(score.name)
            continue
        numerator += weight * score.value
        available_weight += weight
        used.append(score.name)

    reasons = tuple(
        f"{name} unavailable; weight redistributed across available factors"
        for name in dropped
    )
    if available_weight <= 0:
        return CompositeScore(
            value=None,
            available_weight=0.0,
            total_weight=total_weight,
            used=tuple(used),
            dropped=tuple(dropped),
            reasons=reasons or ("No factor available.",),
        )
    return CompositeScore(
        value=numerator / available_weight,
        available_weight=available_weight,
        total_weight=total_weight,
        used=tuple(used),
        dropped=tuple(dropped),
        reasons=reasons,
    )
