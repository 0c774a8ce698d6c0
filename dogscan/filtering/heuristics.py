"""Structural spam heuristics that do not depend on rule sets."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

URL_PATTERN = re.compile(r"https?://\S+|www\.\S+", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")


class BaseHeuristic(ABC):
    """Base class for spam heuristics."""

    name: str = "heuristic"

    def __init__(self, weight: float) -> None:
        self.weight = weight

    @abstractmethod
    def triggered(self, text: str) -> bool:
        """Whether the heuristic fires for the raw item text."""
        pass


class LinkHeuristic(BaseHeuristic):
    """Too many links."""

    name = "heuristic:links"

    def __init__(self, weight: float = 0.4, max_links: int = 2) -> None:
        super().__init__(weight)
        self.max_links = max_links

    def triggered(self, text: str) -> bool:
        return len(URL_PATTERN.findall(text)) > self.max_links


class EmailHeuristic(BaseHeuristic):
    """More than one email address."""

    name = "heuristic:emails"

    def __init__(self, weight: float = 0.4, max_emails: int = 1) -> None:
        super().__init__(weight)
        self.max_emails = max_emails

    def triggered(self, text: str) -> bool:
        return len(EMAIL_PATTERN.findall(text)) > self.max_emails


class PhoneHeuristic(BaseHeuristic):
    """Any phone number."""

    name = "heuristic:phone"

    def __init__(self, weight: float = 0.2) -> None:
        super().__init__(weight)

    def triggered(self, text: str) -> bool:
        return PHONE_PATTERN.search(text) is not None


class ExclamationHeuristic(BaseHeuristic):
    """Excessive exclamation marks."""

    name = "heuristic:exclamations"

    def __init__(self, weight: float = 0.2, max_marks: int = 3) -> None:
        super().__init__(weight)
        self.max_marks = max_marks

    def triggered(self, text: str) -> bool:
        return text.count("!") > self.max_marks


class CapsHeuristic(BaseHeuristic):
    """Shouting: mostly upper-case letters in a non-trivial text."""

    name = "heuristic:caps"

    def __init__(self, weight: float = 0.2, ratio: float = 0.5, min_length: int = 10) -> None:
        super().__init__(weight)
        self.ratio = ratio
        self.min_length = min_length

    def triggered(self, text: str) -> bool:
        stripped = text.strip()
        if len(stripped) <= self.min_length:
            return False
        upper = sum(1 for c in stripped if c.isupper())
        return upper / len(stripped) > self.ratio


@dataclass
class HeuristicResult:
    """Combined heuristic verdict."""

    confidence: float = 0.0
    triggered: List[str] = field(default_factory=list)


class SpamHeuristics:
    """Weighted sum of heuristics, clamped to [0, 1]."""

    def __init__(self, heuristics: Optional[List[BaseHeuristic]] = None) -> None:
        self.heuristics = heuristics if heuristics is not None else [
            LinkHeuristic(),
            EmailHeuristic(),
            PhoneHeuristic(),
            ExclamationHeuristic(),
            CapsHeuristic(),
        ]

    def evaluate(self, text: str) -> HeuristicResult:
        """Evaluate all heuristics against the raw (non-normalized) text."""
        result = HeuristicResult()
        if not text:
            return result

        score = 0.0
        for heuristic in self.heuristics:
            if heuristic.triggered(text):
                score += heuristic.weight
                result.triggered.append(heuristic.name)

        result.confidence = round(max(0.0, min(1.0, score)), 4)
        return result
