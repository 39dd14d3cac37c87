from __future__ import annotations

import math
from dataclasses import dataclass, field


FILLER_WORDS = (
    "um",
    "uh",
    "like",
    "you know",
    "basically",
    "literally",
    "actually",
)

DISCOVERY_KEYWORDS = (
    "goal",
    "currently",
    "budget",
    "target",
    "competition",
    "challenge",
    "measure",
    "success",
    "how",
    "what",
    "why",
    "when",
    "where",
)

OBJECTION_HANDLING_PHRASES = (
    "understand",
    "let me explain",
    "for example",
    "actually",
    "what i mean",
    "let me show you",
    "i see your point",
    "that makes sense",
)

BUSINESS_VALUE_KEYWORDS = (
    "roi",
    "return",
    "revenue",
    "growth",
    "customers",
    "sales",
    "profit",
    "increase",
    "improve",
    "results",
)

GOOGLE_ADS_CONCEPTS = (
    "quality score",
    "cpc",
    "ctr",
    "roas",
    "performance max",
    "smart campaigns",
    "search campaigns",
    "display network",
    "youtube ads",
    "shopping campaigns",
    "keyword research",
    "negative keywords",
    "bidding strategy",
    "ad extensions",
    "conversion tracking",
    "remarketing",
    "audience targeting",
    "budget optimization",
)


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ScoreCurve:
    """Saturating count -> 1..5 mapping: ``clamp(ceil(count / divisor) + offset, floor, 5)``."""

    divisor: int
    offset: int
    floor: int = 2

    def __post_init__(self) -> None:
        if self.divisor < 1:
            raise ValueError("divisor must be at least 1.")
        if not 1 <= self.floor <= 5:
            raise ValueError("floor must be between 1 and 5.")

    def score(self, count: int) -> int:
        raw = math.ceil(max(0, count) / self.divisor) + self.offset
        return int(clamp(raw, self.floor, 5))


@dataclass(frozen=True)
class ScoringProfile:
    filler_words: tuple[str, ...] = FILLER_WORDS
    discovery_keywords: tuple[str, ...] = DISCOVERY_KEYWORDS
    objection_phrases: tuple[str, ...] = OBJECTION_HANDLING_PHRASES
    business_value_keywords: tuple[str, ...] = BUSINESS_VALUE_KEYWORDS
    domain_concepts: tuple[str, ...] = GOOGLE_ADS_CONCEPTS
    discovery_curve: ScoreCurve = field(default_factory=lambda: ScoreCurve(divisor=2, offset=1))
    product_knowledge_curve: ScoreCurve = field(default_factory=lambda: ScoreCurve(divisor=1, offset=2))
    objection_handling_curve: ScoreCurve = field(default_factory=lambda: ScoreCurve(divisor=1, offset=2))
    business_value_curve: ScoreCurve = field(default_factory=lambda: ScoreCurve(divisor=2, offset=1))
    filler_penalty: float = 200.0
    estimated_talk_time_range: tuple[int, int] = (20, 80)
    words_per_talk_time_point: int = 10


DEFAULT_PROFILE = ScoringProfile()
