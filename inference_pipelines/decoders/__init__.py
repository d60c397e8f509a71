"""
Decoders - pure functions turning model outputs into task results

No I/O and no async: every pipeline composes one of these with its
tokenizer/model/processor calls.
"""

from .audio_chunking import AudioChunk, ChunkWindow, plan_windows, stride_to_seconds
from .classification import decode_classification, decode_fill_mask, decode_token_classification
from .features import mean_pooling, normalize, similarity
from .question_answering import decode_answers, find_spans
from .unwrap import UnwrapPolicy, is_batched, unwrap
from .vision import decode_segments, label_detections, select_post_processor
from .zero_shot import (
    build_hypotheses,
    decode_image_text_logits,
    rank_labels,
    resolve_nli_label_ids,
    score_entailment,
)

__all__ = [
    "AudioChunk",
    "ChunkWindow",
    "plan_windows",
    "stride_to_seconds",
    "decode_classification",
    "decode_fill_mask",
    "decode_token_classification",
    "mean_pooling",
    "normalize",
    "similarity",
    "decode_answers",
    "find_spans",
    "UnwrapPolicy",
    "is_batched",
    "unwrap",
    "decode_segments",
    "label_detections",
    "select_post_processor",
    "build_hypotheses",
    "decode_image_text_logits",
    "rank_labels",
    "resolve_nli_label_ids",
    "score_entailment",
]
