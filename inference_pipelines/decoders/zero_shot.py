"""
Zero-shot decoders: NLI entailment scoring and dual-encoder image scoring.
"""

import logging
from typing import Any, List, Mapping, Sequence, Tuple

import numpy as np

from ..maths import softmax
from ..types import ZeroShotResult

logger = logging.getLogger(__name__)
PREFIX = "[ZeroShot]"


def build_hypotheses(candidate_labels: Sequence[str], template: str) -> List[str]:
    """Substitute each label into the first ``{}`` of ``template``."""
    return [template.replace("{}", label, 1) for label in candidate_labels]


def resolve_nli_label_ids(label2id: Mapping[str, int], entailment_default: int = 2,
                          contradiction_default: int = 0) -> Tuple[int, int]:
    """
    Find the entailment and contradiction output indices, case-insensitively.

    Missing names fall back to the given defaults with a warning.
    """
    lowered = {str(k).lower(): int(v) for k, v in (label2id or {}).items()}

    entailment_id = lowered.get("entailment")
    if entailment_id is None:
        logger.warning(f"{PREFIX} Could not find 'entailment' in label2id mapping. "
                       f"Using {entailment_default} as entailment_id.")
        entailment_id = entailment_default

    contradiction_id = lowered.get("contradiction")
    if contradiction_id is None:
        logger.warning(f"{PREFIX} Could not find 'contradiction' in label2id mapping. "
                       f"Using {contradiction_default} as contradiction_id.")
        contradiction_id = contradiction_default

    return entailment_id, contradiction_id


def use_independent_scores(multi_label: bool, num_labels: int) -> bool:
    """Labels are independent binary judgments for multi-label or a single candidate."""
    return multi_label or num_labels == 1


def score_entailment(pair_logits: Sequence[Sequence[float]], entailment_id: int,
                     contradiction_id: int, independent: bool) -> np.ndarray:
    """
    Score each candidate label from its premise/hypothesis logits.

    Args:
        pair_logits: One NLI logits vector per candidate label
        entailment_id: Index of the entailment class
        contradiction_id: Index of the contradiction class
        independent: If True, softmax (contradiction, entailment) per label and
            keep the entailment probability. Otherwise softmax the entailment
            logits jointly across labels.
    """
    logits = np.asarray(pair_logits, dtype=np.float64)
    if independent:
        pairs = logits[:, [contradiction_id, entailment_id]]
        return softmax(pairs)[:, 1]
    return softmax(logits[:, entailment_id])


def rank_labels(sequence: str, candidate_labels: Sequence[str], scores) -> ZeroShotResult:
    """Order labels by descending score; ties keep candidate order."""
    order = sorted(range(len(candidate_labels)), key=lambda i: -float(scores[i]))
    return {
        "sequence": sequence,
        "labels": [candidate_labels[i] for i in order],
        "scores": [float(scores[i]) for i in order],
    }


def decode_image_text_logits(logits_per_image, candidate_labels: Sequence[str]) -> List[List[dict]]:
    """
    Softmax every image's row of the image x label logit matrix.

    Results keep candidate label order.
    """
    results: List[List[dict]] = []
    for row in np.asarray(logits_per_image):
        probs = softmax(row)
        results.append([
            {"score": float(score), "label": label}
            for score, label in zip(probs, candidate_labels)
        ])
    return results
