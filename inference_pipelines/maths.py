"""
Numeric helpers shared by the decoders.

All functions accept array-likes and return numpy arrays or plain Python
values; none of them touch torch.
"""

from itertools import product
from typing import Iterable, List, Sequence, Tuple

import numpy as np


def softmax(logits) -> np.ndarray:
    """Numerically stable softmax over the last axis."""
    values = np.asarray(logits, dtype=np.float64)
    shifted = values - np.max(values, axis=-1, keepdims=True)
    exps = np.exp(shifted)
    return exps / np.sum(exps, axis=-1, keepdims=True)


def get_top_items(scores, top_k: int = 0) -> List[Tuple[int, float]]:
    """
    Return (index, score) pairs sorted by descending score.

    Ties keep their original order. A non-positive ``top_k`` returns every item.
    """
    values = np.asarray(scores)
    order = np.argsort(-values, kind="stable")
    if top_k > 0:
        order = order[:top_k]
    return [(int(i), float(values[i])) for i in order]


def dot(a, b) -> float:
    return float(np.dot(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))


def magnitude(a) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64)))


def cos_sim(a, b) -> float:
    """Cosine similarity between two vectors."""
    return dot(a, b) / (magnitude(a) * magnitude(b))


def cartesian_product(*sequences: Iterable) -> List[tuple]:
    """Cartesian product of the given sequences, first sequence varying slowest."""
    return list(product(*sequences))


def first_index(values: Sequence[int], target) -> int:
    """Index of the first occurrence of ``target``, or -1."""
    if target is None:
        return -1
    matches = np.flatnonzero(np.asarray(values) == target)
    return int(matches[0]) if matches.size else -1
