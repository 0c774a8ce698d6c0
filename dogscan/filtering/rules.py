"""Filter rule sets and the sources they are loaded from."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import RuleError

logger = logging.getLogger(__name__)

RULE_KINDS = ("required", "spam", "inappropriate", "unrelated")


class FilterRule(BaseModel):
    """A single literal or regular-expression pattern."""

    pattern: str = Field(..., description="Substring or regular expression", min_length=1)
    is_regex: bool = Field(False, description="Treat pattern as a regular expression")
    rule_id: Optional[str] = Field(None, description="Audit identifier; defaults to the pattern")
    description: Optional[str] = Field(None, description="What the rule catches")
    enabled: bool = Field(True, description="Disabled rules are ignored")

    @property
    def key(self) -> str:
        """Identifier reported in flagged_patterns."""
        return self.rule_id or self.pattern


class RuleSets(BaseModel):
    """The four named rule collections."""

    required: List[FilterRule] = Field(default_factory=list, description="Topic-positive rules")
    spam: List[FilterRule] = Field(default_factory=list, description="Promotional spam rules")
    inappropriate: List[FilterRule] = Field(default_factory=list, description="Unsafe content rules")
    unrelated: List[FilterRule] = Field(default_factory=list, description="Off-topic chatter rules")

    @field_validator("required", "spam", "inappropriate", "unrelated", mode="before")
    @classmethod
    def expand_shorthand(cls, v):
        """Accept bare strings as literal rules."""
        if v is None:
            return []
        return [{"pattern": rule} if isinstance(rule, str) else rule for rule in v]

    def iter_rules(self) -> Iterator[Tuple[str, FilterRule]]:
        """Yield (kind, rule) for every enabled rule."""
        for kind in RULE_KINDS:
            for rule in getattr(self, kind):
                if rule.enabled:
                    yield kind, rule

    def counts(self) -> Dict[str, int]:
        """Number of enabled rules per kind."""
        counts = {kind: 0 for kind in RULE_KINDS}
        for kind, _ in self.iter_rules():
            counts[kind] += 1
        return counts


def _literal(*patterns: str) -> List[FilterRule]:
    return [FilterRule(pattern=p) for p in patterns]


def _regex(*patterns: str) -> List[FilterRule]:
    return [FilterRule(pattern=p, is_regex=True) for p in patterns]


def default_rule_sets() -> RuleSets:
    """Built-in rules used when no rule file or table is available."""
    return RuleSets(
        required=_literal(
            "hotdog", "hot dog", "hot-dog", "frankfurter", "wiener", "weiner",
            "bratwurst", "kielbasa", "sausage", "corn dog", "chili dog", "chicago dog",
            "coney", "pigs in a blanket", "vienna sausage", "ballpark frank",
            "beef frank", "veggie dog", "tofu dog", "glizzy", "nathan's",
            "oscar mayer", "hebrew national", "sabrett", "sauerkraut", "relish",
        ) + _regex(
            r"hot\s*dogs?",
            r"\bfranks?\b",
            r"\bdirty water dogs?\b",
        ),
        spam=_literal(
            "buy now", "limited time", "discount", "promo code", "click here",
            "act now", "don't miss", "free shipping", "call now", "order today",
            "special offer", "best price", "lowest price", "get yours", "claim your",
            "earn money", "work from home", "make money", "get rich", "risk free",
            "no obligation", "free trial", "like and share", "dm me", "link in bio",
            "swipe up", "check out my", "follow me", "onlyfans", "cashapp",
            "affiliate", "referral code",
        ) + _regex(
            r"save \$\d+",
            r"\bsale\b",
            r"\bgiveaway\b",
            r"\bwinners?\b",
            r"instagram\.com",
            r"paypal\.me",
            r"\bvenmo\b",
            r"\bbitcoin\b",
            r"\bcrypto\b",
            r"\bnft\b",
        ),
        inappropriate=_literal(
            "fuck", "shit", "bitch", "bastard", "porn", "nude", "naked", "xxx",
            "escort", "hookup", "cocaine", "heroin", "nazi", "terrorism", "suicide",
            "murder",
        ) + _regex(
            r"\bdamn\b",
            r"\bass\b",
            r"\bcrap\b",
            r"\bpiss\b",
            r"\bdick\b",
            r"\bcock\b",
            r"\btits\b",
            r"\bboobs\b",
            r"\bsex\b",
            r"\bkill(s|ed|ing)?\b",
            r"\bguns?\b",
            r"\bweapons?\b",
            r"\bbombs?\b",
            r"\bdrugs?\b",
            r"\bweed\b",
            r"\bdrunk\b",
            r"\bracist\b",
            r"\bvodka\b",
            r"\bwhiskey\b",
        ),
        unrelated=_regex(
            r"hot\s*dog[,!\s]+(wow|omg|wtf|lol|lmao|haha)\b",
            r"hot\s*dog[,!\s]+(that'?s|that is) amazing",
            r"hot\s*dog[,!\s]+(dude|bro|man|yo)\b",
            r"hot\s*dog[,!\s]+(no way|really|seriously|incredible|unbelievable)\b",
            r"hot\s*dog[,!\s]+(oh my god|jesus|christ)\b",
            r"hot\s*dog[,!\s]+(this is|that was|you are|he is|she is|it is|we are|they are)\b",
        ),
    )


def parse_rule(entry: Any) -> FilterRule:
    """
    Validate one rule entry; a bare string is a literal pattern.

    Raises:
        RuleError: if the entry is not a valid rule
    """
    if isinstance(entry, str):
        entry = {"pattern": entry}
    if not isinstance(entry, dict):
        raise RuleError(repr(entry), f"expected a pattern string or mapping, got {type(entry).__name__}")
    try:
        return FilterRule(**entry)
    except (TypeError, ValidationError) as e:
        raise RuleError(str(entry.get("rule_id") or entry.get("pattern") or entry), str(e)) from e


def parse_rules(kind: str, entries: Iterable[Any], errors: List[RuleError]) -> List[FilterRule]:
    """Valid rules of one kind; invalid entries are logged, collected in errors and skipped."""
    rules: List[FilterRule] = []
    for entry in entries:
        try:
            rules.append(parse_rule(entry))
        except RuleError as e:
            logger.warning("Skipping %s rule: %s", kind, e)
            errors.append(e)
    return rules


class RuleSource(ABC):
    """Somewhere rule sets can be loaded from."""

    @abstractmethod
    def load_rules(self) -> RuleSets:
        """
        Load rule sets.

        Implementations fall back to the built-in defaults instead of
        raising when their backing storage is unavailable.
        """
        pass


class DefaultRuleSource(RuleSource):
    """Serve the built-in rules."""

    def load_rules(self) -> RuleSets:
        return default_rule_sets()


class YamlRuleSource(RuleSource):
    """Load rules from a YAML file, one list per rule kind."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.rule_errors: List[RuleError] = []

    def load_rules(self) -> RuleSets:
        """
        Load rules.

        Kinds missing from the file keep their defaults; invalid entries
        are skipped and recorded in rule_errors.
        """
        defaults = default_rule_sets()
        self.rule_errors = []

        if not self.path.exists():
            logger.info("Rules file %s not found, using built-in rules", self.path)
            return defaults

        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning("Invalid rules file %s, using built-in rules: %s", self.path, e)
            return defaults

        if not isinstance(data, dict):
            logger.warning("Invalid rules file %s, using built-in rules: top level must be a mapping", self.path)
            return defaults

        unknown = set(data) - set(RULE_KINDS)
        if unknown:
            logger.warning("Ignoring unknown rule kinds in %s: %s", self.path, sorted(unknown))

        merged: Dict[str, List[FilterRule]] = {}
        for kind in RULE_KINDS:
            entries = data.get(kind)
            if kind not in data:
                merged[kind] = getattr(defaults, kind)
            elif entries is None:
                merged[kind] = []
            elif not isinstance(entries, list):
                logger.warning("Rules for %s in %s must be a list, using built-in rules", kind, self.path)
                merged[kind] = getattr(defaults, kind)
            else:
                merged[kind] = parse_rules(kind, entries, self.rule_errors)
        return RuleSets(**merged)


def save_rules(rule_sets: RuleSets, path: Path) -> None:
    """Write rule sets to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        kind: [rule.model_dump(exclude_none=True, exclude_defaults=True) for rule in getattr(rule_sets, kind)]
        for kind in RULE_KINDS
    }

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
