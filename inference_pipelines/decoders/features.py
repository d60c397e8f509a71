"""
Feature pooling, normalisation and similarity for embedding pipelines.
"""

import numpy as np

from ..maths import cos_sim, dot


def mean_pooling(last_hidden_state, attention_mask) -> np.ndarray:
    """
    Attention-weighted mean over the sequence axis.

    Args:
        last_hidden_state: Array of shape [batch, seq_len, embed_dim]
        attention_mask: Array of shape [batch, seq_len]

    Returns:
        Array of shape [batch, embed_dim]. An item whose mask is all zeros
        pools to NaN.
    """
    hidden = np.asarray(last_hidden_state, dtype=np.float64)
    mask = np.asarray(attention_mask, dtype=np.float64)

    summed = np.sum(hidden * mask[:, :, None], axis=1)
    counts = np.sum(mask, axis=1)[:, None]
    with np.errstate(invalid="ignore", divide="ignore"):
        return summed / counts


def normalize(embeddings: np.ndarray) -> np.ndarray:
    """L2-normalise each row in place and return the same array."""
    norms = np.sqrt(np.sum(embeddings * embeddings, axis=1, keepdims=True))
    with np.errstate(invalid="ignore", divide="ignore"):
        np.divide(embeddings, norms, out=embeddings)
    return embeddings


def similarity(a, b, is_normalized: bool = False) -> float:
    """Cosine similarity; unit vectors take the plain dot product path."""
    return dot(a, b) if is_normalized else cos_sim(a, b)
