from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from sqlalchemy import and_
from sqlalchemy.sql import ColumnElement

MOOD_FEATURES: Sequence[str] = ("valence", "energy", "acousticness", "danceability")
UNKNOWN_MOOD = "unknown"

Condition = Tuple[str, Callable[[Any, Any], Any], float]


@dataclass(frozen=True)
class MoodRule:
    name: str
    conditions: Tuple[Condition, ...]

    def matches(self, profile: Mapping[str, Optional[float]]) -> bool:
        for feature, compare, threshold in self.conditions:
            value = profile.get(feature)
            if value is None or not compare(float(value), threshold):
                return False
        return True

    def clause(self, columns: Mapping[str, Any]) -> ColumnElement[bool]:
        return and_(*(compare(columns[feature], threshold) for feature, compare, threshold in self.conditions))


# evaluated in this order, first match wins
MOOD_RULES: Tuple[MoodRule, ...] = (
    MoodRule("happy", (("valence", operator.ge, 0.6), ("energy", operator.ge, 0.6))),
    MoodRule("sad", (("valence", operator.le, 0.4), ("energy", operator.le, 0.5))),
    MoodRule("chill", (("acousticness", operator.ge, 0.5), ("energy", operator.le, 0.5))),
    MoodRule("hype", (("energy", operator.ge, 0.75), ("danceability", operator.ge, 0.7))),
)

MOODS: Tuple[str, ...] = tuple(rule.name for rule in MOOD_RULES)


def get_rule(mood: str) -> Optional[MoodRule]:
    for rule in MOOD_RULES:
        if rule.name == mood:
            return rule
    return None


def classify_mood(profile: Mapping[str, Optional[float]]) -> str:
    for rule in MOOD_RULES:
        if rule.matches(profile):
            return rule.name
    return UNKNOWN_MOOD
