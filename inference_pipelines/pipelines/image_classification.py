"""
ImageClassificationPipeline - Image classification

For: Any ModelForImageClassification (ViT, ConvNeXT, ...)
"""

from typing import Any

from ..config import PIPELINE_DEFAULTS
from ..decoders.classification import decode_classification
from ..decoders.unwrap import UnwrapPolicy, is_batched, unwrap
from ..media import prepare_images
from ..types import PipelineTask
from .base import BasePipeline


class ImageClassificationPipeline(BasePipeline):
    """
    Image classification pipeline.

    Same ranking and ``topk == 1`` flattening as text classification.
    """

    unwrap_policy = UnwrapPolicy.CLASSIFICATION

    def pipeline_type(self) -> str:
        return PipelineTask.IMAGE_CLASSIFICATION.value

    async def invoke(self, images: Any, topk: int = PIPELINE_DEFAULTS.classification_topk) -> Any:
        batched = is_batched(images)
        images = prepare_images(images)

        inputs = await self.processor(images)
        outputs = await self.model(inputs)

        results = decode_classification(outputs.logits, self.id2label, topk)
        return unwrap(results, self.unwrap_policy, batched=batched, topk=topk)
