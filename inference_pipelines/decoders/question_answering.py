"""
Extractive question answering span search.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..maths import cartesian_product, softmax

# (start index, end index inclusive, score)
Span = Tuple[int, int, float]


def find_spans(start_logits, end_logits, sep_index: int,
               attention_mask: Optional[Sequence[int]] = None) -> List[Span]:
    """
    Score every valid answer span of one sequence.

    Start and end logits are softmaxed independently. Only positions strictly
    after the separator are candidates, so an answer never falls inside the
    question. Padding positions (attention mask 0) are never candidates.

    Returns:
        Spans with ``start <= end`` sorted by descending
        ``p_start * p_end``; ties keep start-major order.
    """
    start_probs = softmax(start_logits)
    end_probs = softmax(end_logits)

    positions = [i for i in range(len(start_probs)) if i > sep_index]
    if attention_mask is not None:
        positions = [i for i in positions if attention_mask[i]]

    starts = [(float(start_probs[i]), i) for i in positions]
    ends = [(float(end_probs[i]), i) for i in positions]

    spans = [
        (start[1], end[1], start[0] * end[0])
        for start, end in cartesian_product(starts, ends)
        if start[1] <= end[1]
    ]
    return sorted(spans, key=lambda span: -span[2])


def decode_answers(start_logits, end_logits, input_ids, sep_token_id: int, decode_sequence,
                   topk: int = 1, attention_mask=None) -> List[dict]:
    """
    Top ``topk`` answers for every item of a batch, flattened in batch order.

    Args:
        start_logits: Array of shape [batch, seq_len]
        end_logits: Array of shape [batch, seq_len]
        input_ids: Array of shape [batch, seq_len]
        sep_token_id: Separator id; the first occurrence marks the context start
        decode_sequence: Callable turning ids into text without special tokens
        topk: Answers kept per item
        attention_mask: Optional array of shape [batch, seq_len]
    """
    answers = []
    input_ids = np.asarray(input_ids)
    for j, ids in enumerate(input_ids):
        matches = np.flatnonzero(ids == sep_token_id)
        sep_index = int(matches[0]) if matches.size else -1
        mask = None if attention_mask is None else np.asarray(attention_mask)[j]

        spans = find_spans(start_logits[j], end_logits[j], sep_index, mask)
        for start, end, score in spans[:topk]:
            answer_tokens = [int(x) for x in ids[start:end + 1]]
            answers.append({
                "answer": decode_sequence(answer_tokens),
                "score": score,
            })
    return answers
