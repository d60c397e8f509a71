"""
TokenClassificationPipeline - Named entity recognition

For: Any ModelForTokenClassification
"""

from typing import Any, Iterable

from ..config import PIPELINE_DEFAULTS
from ..decoders.classification import decode_token_classification
from ..decoders.unwrap import is_batched, unwrap
from ..types import PipelineTask
from .base import BasePipeline


class TokenClassificationPipeline(BasePipeline):
    """
    Token classification pipeline.

    One record per token whose arg-max label is not ignored; special tokens
    are skipped.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.TOKEN_CLASSIFICATION.value

    async def invoke(self, texts: Any,
                     ignore_labels: Iterable[str] = PIPELINE_DEFAULTS.ignore_labels) -> Any:
        batched = is_batched(texts)
        if not batched:
            texts = [texts]

        inputs, outputs = await self._run(texts)

        def decode_token(token_id: int) -> str:
            return self.tokenizer.decode([token_id], skip_special_tokens=True)

        results = decode_token_classification(
            outputs.logits,
            inputs["input_ids"],
            self.id2label,
            decode_token,
            ignore_labels=ignore_labels,
        )
        return unwrap(results, self.unwrap_policy, batched=batched)
