"""Content filtering: rule sets, heuristics and the filter engine."""

from .engine import (
    FilterEngine,
    PatternTestResult,
    classify_content_type,
    normalize_for_matching,
)
from .heuristics import SpamHeuristics
from .rules import (
    RULE_KINDS,
    DefaultRuleSource,
    FilterRule,
    RuleSets,
    RuleSource,
    YamlRuleSource,
    default_rule_sets,
    parse_rule,
    save_rules,
)

__all__ = [
    "DefaultRuleSource",
    "FilterEngine",
    "FilterRule",
    "PatternTestResult",
    "RULE_KINDS",
    "RuleSets",
    "RuleSource",
    "SpamHeuristics",
    "YamlRuleSource",
    "classify_content_type",
    "default_rule_sets",
    "normalize_for_matching",
    "parse_rule",
    "save_rules",
]
