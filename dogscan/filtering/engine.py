"""Rule matching and confidence scoring for candidate items."""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from ..config.models import FilterSettings
from ..errors import RuleError
from ..models import CandidateItem, ContentAnalysis, ContentType
from .heuristics import SpamHeuristics
from .rules import RULE_KINDS, FilterRule, RuleSets

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 0.99
MAX_CACHED_RULE_SETS = 16

GIF_EXTENSIONS = (".gif", ".gifv")
VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".m4v", ".m3u8")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".bmp")
VIDEO_HOSTS = ("youtube.com", "youtu.be", "v.redd.it", "vimeo.com", "tiktok.com")
GIF_HOSTS = ("giphy.com", "gfycat.com", "tenor.com")


def normalize_for_matching(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return " ".join(text.lower().split())


def classify_content_type(item: CandidateItem) -> ContentType:
    """Media kind of an item: adapter-supplied type wins, otherwise derive from media_url."""
    if item.content_type is not None:
        return item.content_type
    if not item.media_url:
        return ContentType.TEXT

    parsed = urlparse(item.media_url.lower())
    host = parsed.netloc
    path = parsed.path

    if path.endswith(GIF_EXTENSIONS) or any(host.endswith(h) for h in GIF_HOSTS):
        return ContentType.GIF
    if path.endswith(VIDEO_EXTENSIONS) or any(host.endswith(h) for h in VIDEO_HOSTS):
        return ContentType.VIDEO
    if path.endswith(IMAGE_EXTENSIONS):
        return ContentType.IMAGE
    # Unknown extension on a media URL is still visual content
    return ContentType.IMAGE


@dataclass
class CompiledRule:
    """A rule prepared for matching."""

    kind: str
    key: str
    literal: Optional[str] = None
    regex: Optional[Pattern] = None

    def matches(self, text: str) -> bool:
        if self.regex is not None:
            return self.regex.search(text) is not None
        return self.literal in text


class PatternTestResult(BaseModel):
    """Outcome of trying one pattern against sample text."""

    pattern: str = Field(..., description="Pattern under test")
    is_regex: bool = Field(False, description="Whether it was treated as a regex")
    matched: bool = Field(False, description="Whether it matched")
    matches: List[str] = Field(default_factory=list, description="Matched fragments")
    error: Optional[str] = Field(None, description="Compile error, if any")


def compile_rule(kind: str, rule: FilterRule) -> CompiledRule:
    """Compile a rule, raising RuleError for an invalid regex."""
    if rule.is_regex:
        try:
            regex = re.compile(rule.pattern, re.IGNORECASE)
        except re.error as e:
            raise RuleError(rule.key, str(e)) from e
        return CompiledRule(kind=kind, key=rule.key, regex=regex)
    return CompiledRule(kind=kind, key=rule.key, literal=normalize_for_matching(rule.pattern))


class FilterEngine:
    """
    Classify candidates against rule sets.

    Rules that fail to compile or evaluate are disabled and reported in
    rule_errors; the remaining rules keep working.
    """

    def __init__(
        self,
        rule_sets: RuleSets,
        settings: Optional[FilterSettings] = None,
        topic_gate_policy: str = "strict",
        heuristics: Optional[SpamHeuristics] = None,
    ) -> None:
        """
        Initialize filter engine.

        Args:
            rule_sets: Required/spam/inappropriate/unrelated rules
            settings: Scoring constants
            topic_gate_policy: "strict" or "permissive"
            heuristics: Spam heuristics, defaults to the standard set
        """
        if topic_gate_policy not in ("strict", "permissive"):
            raise ValueError(f"Unknown topic gate policy: {topic_gate_policy}")

        self.rule_sets = rule_sets
        self.settings = settings or FilterSettings()
        self.topic_gate_policy = topic_gate_policy
        self.heuristics = heuristics or SpamHeuristics()
        self.rule_errors: List[RuleError] = []
        self._lock = threading.Lock()
        self._rules = self._compile(rule_sets)
        self._override_rules: Dict[int, Tuple[RuleSets, Dict[str, List[CompiledRule]]]] = {}
        self._context_terms = [
            re.compile(r"\b" + re.escape(normalize_for_matching(t)) + r"\b")
            for t in self.settings.context_terms
        ]

    def _compile(self, rule_sets: RuleSets) -> Dict[str, List[CompiledRule]]:
        compiled: Dict[str, List[CompiledRule]] = {kind: [] for kind in RULE_KINDS}
        for kind, rule in rule_sets.iter_rules():
            try:
                compiled[kind].append(compile_rule(kind, rule))
            except RuleError as e:
                logger.warning("Skipping %s rule: %s", kind, e)
                self.rule_errors.append(e)
        return compiled

    def _rules_for(self, rule_sets: Optional[RuleSets]) -> Dict[str, List[CompiledRule]]:
        """Compiled rules for a per-call rule set, compiled once and cached."""
        if rule_sets is None or rule_sets is self.rule_sets:
            return self._rules
        with self._lock:
            cached = self._override_rules.get(id(rule_sets))
            if cached is not None and cached[0] is rule_sets:
                return cached[1]
            if len(self._override_rules) >= MAX_CACHED_RULE_SETS:
                self._override_rules.clear()
            compiled = self._compile(rule_sets)
            self._override_rules[id(rule_sets)] = (rule_sets, compiled)
            return compiled

    def _match(self, rules: Dict[str, List[CompiledRule]], kind: str, text: str) -> List[str]:
        """Keys of rules of one kind that match, in rule order, without repeats."""
        matched: List[str] = []
        for rule in list(rules[kind]):
            try:
                hit = rule.matches(text)
            except Exception as e:
                with self._lock:
                    if rule in rules[kind]:
                        logger.warning("Disabling %s rule %r after evaluation error: %s", kind, rule.key, e)
                        self.rule_errors.append(RuleError(rule.key, str(e)))
                        rules[kind].remove(rule)
                continue
            if hit and rule.key not in matched:
                matched.append(rule.key)
        return matched

    def _has_secondary_evidence(self, text: str, content_type: ContentType) -> bool:
        if any(term.search(text) for term in self._context_terms):
            return True
        return content_type.is_visual and len(text) < self.settings.short_text_length

    def classify(self, item: CandidateItem, rule_sets: Optional[RuleSets] = None) -> ContentAnalysis:
        """
        Classify one candidate.

        Args:
            item: Candidate to classify
            rule_sets: Use these rules for this call instead of the engine's own

        Returns:
            ContentAnalysis with confidence in [0, 1]
        """
        rules = self._rules_for(rule_sets)
        s = self.settings
        text = normalize_for_matching(item.text or "")
        content_type = classify_content_type(item)
        notes: List[str] = []

        topic_matches = self._match(rules, "required", text)
        spam_matches = self._match(rules, "spam", text)
        inappropriate_matches = self._match(rules, "inappropriate", text)
        unrelated_matches = self._match(rules, "unrelated", text)
        heuristic = self.heuristics.evaluate(item.text or "")

        is_spam = bool(spam_matches) or heuristic.confidence >= s.spam_heuristic_threshold
        is_inappropriate = bool(inappropriate_matches)
        is_unrelated = bool(unrelated_matches)

        topic_passed = bool(topic_matches)
        if topic_passed:
            confidence = s.base_topic_confidence
            notes.append(f"topic match ({len(topic_matches)}): {confidence}")
        elif self.topic_gate_policy == "permissive" and self._has_secondary_evidence(text, content_type):
            topic_passed = True
            confidence = s.fallback_confidence
            notes.append(f"no topic match, secondary evidence: {confidence}")
        else:
            confidence = s.no_topic_confidence
            notes.append(f"no topic match: {confidence}")

        def boost(value: float, amount: float, note: str) -> float:
            notes.append(f"{note}: +{amount}")
            return round(min(MAX_CONFIDENCE, value + amount), 4)

        def penalize(value: float, amount: float, note: str) -> float:
            notes.append(f"{note}: -{amount}")
            return round(max(0.0, value - amount), 4)

        if content_type.is_visual:
            confidence = boost(confidence, s.media_boost, f"{content_type.value} content")
        if content_type is ContentType.GIF:
            confidence = boost(confidence, s.gif_boost, "gif content")
        if len(topic_matches) > 1:
            confidence = boost(confidence, s.multi_term_boost, "multiple topic terms")
        if item.engagement_score is not None and item.engagement_score >= s.engagement_threshold:
            confidence = boost(confidence, s.engagement_boost, "high engagement")

        if is_spam:
            confidence = penalize(confidence, s.spam_penalty, "spam")
        if is_inappropriate:
            confidence = penalize(confidence, s.inappropriate_penalty, "inappropriate")
        if is_unrelated:
            confidence = penalize(confidence, s.unrelated_penalty, "unrelated chatter")

        flagged: List[str] = []
        for key in spam_matches + inappropriate_matches + unrelated_matches + heuristic.triggered:
            if key not in flagged:
                flagged.append(key)

        return ContentAnalysis(
            is_spam=is_spam,
            is_inappropriate=is_inappropriate,
            is_unrelated=is_unrelated,
            is_valid_topic=topic_passed and not is_spam and not is_inappropriate,
            confidence=confidence,
            spam_confidence=heuristic.confidence,
            content_type=content_type,
            matched_topic_rules=topic_matches,
            flagged_patterns=flagged,
            processing_notes=notes,
        )

    @staticmethod
    def test_pattern(pattern: str, text: str, is_regex: bool = False) -> PatternTestResult:
        """Try a pattern against sample text the same way classify would."""
        result = PatternTestResult(pattern=pattern, is_regex=is_regex)
        try:
            rule = compile_rule("test", FilterRule(pattern=pattern, is_regex=is_regex))
        except RuleError as e:
            result.error = e.message
            return result
        except ValueError as e:
            result.error = str(e)
            return result

        normalized = normalize_for_matching(text)
        if rule.regex is not None:
            result.matches = [m.group(0) for m in rule.regex.finditer(normalized)]
        elif rule.literal and rule.literal in normalized:
            result.matches = [rule.literal]
        result.matched = bool(result.matches)
        return result
