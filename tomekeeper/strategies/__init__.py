"""Per-domain converters and the registry that dispatches to them."""

from .common import RULESETS, Ruleset, get_ruleset
from .registry import Converter, StrategyRegistry, WritePolicy, strategy_registry

__all__ = ["Converter", "StrategyRegistry", "WritePolicy", "strategy_registry", "Ruleset", "RULESETS", "get_ruleset"]
