"""
ZeroShotImageClassificationPipeline - CLIP-style zero-shot image classification

For: Dual-encoder models producing an image x text logit matrix
"""

from typing import Any, Sequence

from ..config import PIPELINE_DEFAULTS
from ..decoders.unwrap import is_batched, unwrap
from ..decoders.zero_shot import build_hypotheses, decode_image_text_logits
from ..media import prepare_images
from ..types import PipelineTask
from .base import BasePipeline


class ZeroShotImageClassificationPipeline(BasePipeline):
    """
    Zero-shot image classification pipeline.

    All images and hypotheses go through the model in one call; scores are
    a softmax over each image's row of ``logits_per_image``.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.ZERO_SHOT_IMAGE_CLASSIFICATION.value

    async def invoke(self, images: Any, candidate_labels: Sequence[str],
                     hypothesis_template: str = PIPELINE_DEFAULTS.image_hypothesis_template) -> Any:
        batched = is_batched(images)
        images = prepare_images(images)
        candidate_labels = list(candidate_labels)

        texts = build_hypotheses(candidate_labels, hypothesis_template)
        text_inputs = self.tokenizer(texts, padding=True, truncation=True)
        image_inputs = await self.processor(images)

        outputs = await self.model({**text_inputs, **image_inputs})

        results = decode_image_text_logits(outputs.logits_per_image, candidate_labels)
        return unwrap(results, self.unwrap_policy, batched=batched)
