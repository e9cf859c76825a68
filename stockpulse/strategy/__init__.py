"""Rule-based strategy selection with action cards."""

from stockpulse.strategy._config import StrategyConfig, StrategyMode, StrategySignal
from stockpulse.strategy._rules import (
    RULES,
    ActionCard,
    RuleOutcome,
    StrategyInputs,
    StrategyRule,
    base_risk_notes,
)
from stockpulse.strategy._selector import (
    Contradiction,
    StrategyDecision,
    StrategyExplain,
    select_strategy,
    strategy_confidence,
)

__all__ = [
    # Config
    "StrategyConfig",
    "StrategyMode",
    "StrategySignal",
    # Rules
    "RULES",
    "ActionCard",
    "RuleOutcome",
    "StrategyInputs",
    "StrategyRule",
    "base_risk_notes",
    # Selection
    "Contradiction",
    "StrategyDecision",
    "StrategyExplain",
    "select_strategy",
    "strategy_confidence",
]
