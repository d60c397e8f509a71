"""
TextClassificationPipeline - Sequence classification

For: Any ModelForSequenceClassification (sentiment, topic, ...)
"""

import logging
from typing import Any

from ..config import PIPELINE_DEFAULTS
from ..decoders.classification import decode_classification
from ..decoders.unwrap import UnwrapPolicy, is_batched, unwrap
from ..types import PipelineTask
from .base import BasePipeline

logger = logging.getLogger(__name__)


class TextClassificationPipeline(BasePipeline):
    """
    Text classification pipeline.

    Returns the ``topk`` (label, score) pairs per text. With ``topk == 1`` the
    result is always a flat list with one record per text.
    """

    unwrap_policy = UnwrapPolicy.CLASSIFICATION

    def pipeline_type(self) -> str:
        return PipelineTask.TEXT_CLASSIFICATION.value

    async def invoke(self, texts: Any, topk: int = PIPELINE_DEFAULTS.classification_topk) -> Any:
        """
        Classify text(s).

        Args:
            texts: A string or a list of strings
            topk: Number of top predictions per text

        Returns:
            List of {'label', 'score'} dicts (or list of such lists)
        """
        _, outputs = await self._run(texts)

        results = decode_classification(outputs.logits, self.id2label, topk)
        logger.debug(f"[TextClassification] Classified {len(outputs.logits)} text(s) (topk={topk})")

        return unwrap(results, self.unwrap_policy, batched=is_batched(texts), topk=topk)
