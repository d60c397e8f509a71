"""
ZeroShotClassificationPipeline - Zero-shot classification

For: Models that classify text into arbitrary categories without training
Uses NLI (Natural Language Inference) models for zero-shot classification
"""

import logging
from typing import Any, List, Sequence, Union

from ..config import PIPELINE_DEFAULTS
from ..decoders.unwrap import is_batched, unwrap
from ..decoders.zero_shot import (
    build_hypotheses,
    rank_labels,
    resolve_nli_label_ids,
    score_entailment,
    use_independent_scores,
)
from ..types import PipelineTask, ZeroShotResult
from .base import BasePipeline

logger = logging.getLogger(__name__)


class ZeroShotClassificationPipeline(BasePipeline):
    """
    Zero-shot classification pipeline.

    Every candidate label becomes a hypothesis; each premise/hypothesis pair
    is run through the NLI model on its own and scored from the entailment
    (and contradiction) logits.
    """

    def __init__(self, task: str, tokenizer: Any = None, model: Any = None,
                 processor: Any = None):
        super().__init__(task, tokenizer, model, processor)

        self.entailment_id, self.contradiction_id = resolve_nli_label_ids(
            getattr(self.model.config, "label2id", None) or {},
            entailment_default=PIPELINE_DEFAULTS.entailment_fallback_id,
            contradiction_default=PIPELINE_DEFAULTS.contradiction_fallback_id,
        )

    def pipeline_type(self) -> str:
        return PipelineTask.ZERO_SHOT_CLASSIFICATION.value

    async def invoke(self, texts: Any, candidate_labels: Union[str, Sequence[str]],
                     hypothesis_template: str = PIPELINE_DEFAULTS.nli_hypothesis_template,
                     multi_label: bool = False) -> Any:
        """
        Classify text(s) against candidate labels.

        Args:
            texts: A string or a list of strings
            candidate_labels: A label or a list of labels
            hypothesis_template: Template with a ``{}`` placeholder for the label
            multi_label: If True, labels are scored independently; otherwise
                scores are normalised to sum to 1 across labels

        Returns:
            {'sequence', 'labels', 'scores'} (or a list of them)
        """
        batched = is_batched(texts)
        if not batched:
            texts = [texts]
        if isinstance(candidate_labels, str):
            candidate_labels = [candidate_labels]
        candidate_labels = list(candidate_labels)

        hypotheses = build_hypotheses(candidate_labels, hypothesis_template)
        independent = use_independent_scores(multi_label, len(candidate_labels))

        logger.debug(f"[ZeroShot] Classifying {len(texts)} text(s) with "
                     f"{len(candidate_labels)} labels (independent={independent})")

        results: List[ZeroShotResult] = []
        for premise in texts:
            pair_logits = []
            # One model call per hypothesis
            for hypothesis in hypotheses:
                inputs = self.tokenizer(premise, text_pair=hypothesis)
                outputs = await self.model(inputs)
                pair_logits.append(outputs.logits[0])

            scores = score_entailment(pair_logits, self.entailment_id,
                                      self.contradiction_id, independent)
            results.append(rank_labels(premise, candidate_labels, scores))

        return unwrap(results, self.unwrap_policy, batched=batched)
