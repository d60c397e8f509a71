"""
ImageToTextPipeline - Image captioning

For: Vision2Seq models (ViT-GPT2, BLIP, ...)
"""

from typing import Any

from ..decoders.generation import flatten_generated
from ..decoders.unwrap import is_batched, unwrap
from ..media import prepare_images
from ..types import PipelineTask
from .base import BasePipeline


class ImageToTextPipeline(BasePipeline):
    """
    Image captioning pipeline.

    Each image is generated on its own with a batch dimension of 1.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.IMAGE_TO_TEXT.value

    async def invoke(self, images: Any, **generate_kwargs: Any) -> Any:
        batched = is_batched(images)
        images = prepare_images(images)

        pixel_values = (await self.processor(images))["pixel_values"]

        results = []
        for pixels in pixel_values:
            generated = await self.model.generate(pixels[None, ...], generate_kwargs)
            decoded = self.tokenizer.batch_decode(
                flatten_generated(generated),
                skip_special_tokens=True,
            )
            results.append([{"generated_text": text.strip()} for text in decoded])

        return unwrap(results, self.unwrap_policy, batched=batched)
