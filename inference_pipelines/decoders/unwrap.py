"""
Result unwrap policy

Decoders always work on batches. Whether the caller gets a scalar-shaped or a
list-shaped result is decided here, once, after decoding.
"""

from enum import Enum
from typing import Any, List, Optional


class UnwrapPolicy(str, Enum):
    """How a batched decoder result is reshaped for the caller"""

    # Scalar input -> first item, sequence input -> list
    BATCH = "batch"
    # Classification: topk == 1 flattens each item's singleton list and always returns the list
    CLASSIFICATION = "classification"
    # Question answering: topk == 1 -> first span, regardless of input cardinality
    FIRST_IF_TOPK_1 = "first_if_topk_1"
    # Causal generation: scalar prompt with a single result -> that result
    SINGLE_PROMPT = "single_prompt"
    # Always return the list as produced
    NEVER = "never"


def is_batched(inputs: Any) -> bool:
    """Sequence inputs are batches; strings, arrays of samples and images are not."""
    return isinstance(inputs, (list, tuple))


def flatten_topk(per_item: List[List[Any]], topk: int) -> List[Any]:
    """With ``topk == 1`` each item's singleton list becomes a flat list element."""
    if topk == 1:
        return [value for values in per_item for value in values]
    return per_item


def unwrap(results: List[Any], policy: UnwrapPolicy, *, batched: bool,
           topk: Optional[int] = None) -> Any:
    """
    Apply ``policy`` to a batched result list.

    Args:
        results: One entry per batch item (or per span for question answering)
        policy: Unwrap policy of the calling pipeline
        batched: Whether the caller passed a sequence of inputs
        topk: Requested number of candidates, for topk-dependent policies

    Returns:
        The caller-facing result
    """
    if policy is UnwrapPolicy.BATCH:
        return results if batched else results[0]

    if policy is UnwrapPolicy.CLASSIFICATION:
        return results if batched or topk == 1 else results[0]

    if policy is UnwrapPolicy.FIRST_IF_TOPK_1:
        if topk == 1:
            return results[0] if results else None
        return results

    if policy is UnwrapPolicy.SINGLE_PROMPT:
        return results[0] if not batched and len(results) == 1 else results

    return results
