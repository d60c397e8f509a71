"""
Classification-family decoders (sequence, image and token classification).
"""

from typing import Any, Iterable, List, Mapping, Sequence

import numpy as np

from ..maths import get_top_items, softmax
from ..types import LabelScore, TokenPrediction
from .unwrap import flatten_topk


def lookup_label(id2label: Mapping[Any, str], index: int) -> str:
    """id2label tables may be keyed by int (transformers) or by str (JSON configs)."""
    if index in id2label:
        return id2label[index]
    return id2label[str(index)]


def decode_classification(logits, id2label: Mapping[Any, str], topk: int = 1) -> List[Any]:
    """
    Turn per-item logits into ranked (label, score) records.

    Args:
        logits: Array of shape [batch, num_labels]
        id2label: Model's index -> label table
        topk: Number of candidates per item (non-positive keeps all)

    Returns:
        One list of LabelScore per item, or a flat list of LabelScore when
        ``topk == 1``.
    """
    per_item: List[List[LabelScore]] = []
    for item_logits in np.asarray(logits):
        scores = get_top_items(softmax(item_logits), topk)
        per_item.append([
            {"label": lookup_label(id2label, index), "score": score}
            for index, score in scores
        ])
    return flatten_topk(per_item, topk)


def decode_token_classification(logits, input_ids, id2label: Mapping[Any, str],
                                decode_token, ignore_labels: Iterable[str] = ("O",)
                                ) -> List[List[TokenPrediction]]:
    """
    Arg-max label per token, dropping ignored labels and special tokens.

    Args:
        logits: Array of shape [batch, seq_len, num_labels]
        input_ids: Array of shape [batch, seq_len]
        id2label: Model's index -> label table
        decode_token: Callable turning a single token id into text
            (special tokens decode to "")
        ignore_labels: Labels that are never reported

    Returns:
        One list of TokenPrediction per batch item. Character offsets are not
        tracked, so ``start``/``end`` are always None.
    """
    ignored = set(ignore_labels)
    results: List[List[TokenPrediction]] = []
    for item_logits, ids in zip(np.asarray(logits), np.asarray(input_ids)):
        tokens: List[TokenPrediction] = []
        for position, token_logits in enumerate(item_logits):
            top_index = int(np.argmax(token_logits))
            entity = lookup_label(id2label, top_index)
            if entity in ignored:
                continue

            word = decode_token(int(ids[position]))
            if word == "":
                continue

            scores = softmax(token_logits)
            tokens.append({
                "entity": entity,
                "score": float(scores[top_index]),
                "index": position,
                "word": word,
                "start": None,
                "end": None,
            })
        results.append(tokens)
    return results


def decode_fill_mask(logits, input_ids: Sequence[int], mask_index: int, vocab: Sequence[str],
                     decode_sequence, topk: int = 5) -> List[dict]:
    """
    Rank replacement tokens for the mask position of one sequence.

    Args:
        logits: Array of shape [seq_len, vocab_size]
        input_ids: Encoded sequence containing the mask token
        mask_index: Position of the mask token
        vocab: id -> token string table
        decode_sequence: Callable turning ids into text without special tokens
        topk: Number of candidates to return
    """
    item_logits = np.asarray(logits)[mask_index]
    predictions = []
    for token_id, score in get_top_items(softmax(item_logits), topk):
        sequence = [int(x) for x in input_ids]
        sequence[mask_index] = token_id
        predictions.append({
            "score": score,
            "token": token_id,
            "token_str": vocab[token_id],
            "sequence": decode_sequence(sequence),
        })
    return predictions
