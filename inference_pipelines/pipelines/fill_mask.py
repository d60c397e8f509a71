"""
FillMaskPipeline - Masked language modeling

For: Any ModelWithLMHead (BERT-style masked LMs)
"""

from typing import Any

from ..config import PIPELINE_DEFAULTS
from ..decoders.classification import decode_fill_mask
from ..decoders.unwrap import is_batched, unwrap
from ..errors import MissingTokenError
from ..maths import first_index
from ..types import PipelineTask
from .base import BasePipeline


class FillMaskPipeline(BasePipeline):
    """
    Fill-mask pipeline.

    Ranks vocabulary tokens for the first mask token of each text.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.FILL_MASK.value

    async def invoke(self, texts: Any, topk: int = PIPELINE_DEFAULTS.fill_mask_topk) -> Any:
        inputs, outputs = await self._run(texts)

        def decode_sequence(ids):
            return self.tokenizer.decode(ids, skip_special_tokens=True)

        results = []
        for i, ids in enumerate(inputs["input_ids"]):
            mask_index = first_index(ids, self.tokenizer.mask_token_id)
            if mask_index == -1:
                raise MissingTokenError(
                    f"Mask token ({self.tokenizer.mask_token}) not found in text."
                )
            results.append(decode_fill_mask(
                outputs.logits[i],
                ids,
                mask_index,
                self.tokenizer.vocab,
                decode_sequence,
                topk=topk,
            ))

        return unwrap(results, self.unwrap_policy, batched=is_batched(texts))
