from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
from sqlalchemy import Float, and_, case, func, literal
from sqlalchemy.sql import ColumnElement, FromClause

FEATURE_KEYS: Sequence[str] = (
    "danceability",
    "energy",
    "liveness",
    "key",
    "loudness",
    "speechiness",
    "acousticness",
    "valence",
    "tempo",
)

# divisors bringing each feature to roughly unit range before comparison
FEATURE_SCALES: Mapping[str, float] = {
    "key": 11.0,
    "loudness": 60.0,
    "tempo": 250.0,
}


def feature_vector(values: Mapping[str, Any]) -> Optional[np.ndarray]:
    """Scaled feature vector, or ``None`` if any feature is missing."""
    components = []
    for key in FEATURE_KEYS:
        value = values.get(key)
        if value is None:
            return None
        components.append(float(value) / FEATURE_SCALES.get(key, 1.0))
    return np.array(components, dtype=np.float64)


def cosine_similarity(u: np.ndarray, v: np.ndarray) -> Optional[float]:
    norm = float(np.linalg.norm(u)) * float(np.linalg.norm(v))
    if norm == 0.0:
        return None
    score = float(np.dot(u, v)) / norm
    return max(-1.0, min(1.0, score))


def feature_columns(source: Any) -> Dict[str, ColumnElement[Any]]:
    """Feature columns of an ORM class or of a subquery exposing the same column names."""
    if isinstance(source, FromClause):
        return {key: source.c[key] for key in FEATURE_KEYS}
    return {key: getattr(source, key) for key in FEATURE_KEYS}


def features_present(columns: Mapping[str, ColumnElement[Any]]) -> ColumnElement[bool]:
    return and_(*(columns[key].is_not(None) for key in FEATURE_KEYS))


def scaled_columns(columns: Mapping[str, ColumnElement[Any]]) -> list[ColumnElement[Any]]:
    """Feature columns scaled the same way as :func:`feature_vector`."""
    scaled = []
    for key in FEATURE_KEYS:
        column = columns[key]
        scale = FEATURE_SCALES.get(key)
        scaled.append(column / scale if scale else column)
    return scaled


def similarity_expression(columns: Sequence[ColumnElement[Any]], seed: np.ndarray) -> ColumnElement[Any]:
    """Cosine similarity between each row's ``columns`` and ``seed``, computed by the database.

    The denominator goes through ``NULLIF(..., 0)`` so rows (or seeds) with a
    zero norm come back as NULL instead of failing on division by zero. The
    score is clamped to [-1, 1] like :func:`cosine_similarity`.
    """
    if len(columns) != len(seed):
        raise ValueError("column count does not match seed dimension")
    seed_norm = math.sqrt(float(np.dot(seed, seed)))
    dot = None
    square_sum = None
    for column, weight in zip(columns, seed):
        term = column * literal(float(weight), Float)
        square = column * column
        dot = term if dot is None else dot + term
        square_sum = square if square_sum is None else square_sum + square
    denominator = func.sqrt(square_sum) * literal(seed_norm, Float)
    score = dot / func.nullif(denominator, 0)
    return case((score > 1.0, 1.0), (score < -1.0, -1.0), else_=score)
