"""
ObjectDetectionPipeline - Bounding boxes and classes

For: Any ModelForObjectDetection (DETR, YOLOS, ...)
"""

from typing import Any

from ..config import PIPELINE_DEFAULTS
from ..decoders.unwrap import is_batched, unwrap
from ..decoders.vision import check_single_image, label_detections
from ..media import image_sizes, prepare_images
from ..types import PipelineTask
from .base import BasePipeline


class ObjectDetectionPipeline(BasePipeline):
    """
    Object detection pipeline.

    Only one image per call is supported.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.OBJECT_DETECTION.value

    async def invoke(self, images: Any, threshold: float = PIPELINE_DEFAULTS.detection_threshold,
                     percentage: bool = False) -> Any:
        """
        Detect objects in an image.

        Args:
            images: An image, or a list holding exactly one image
            threshold: Minimum detection score
            percentage: Return boxes normalised to [0, 1] instead of pixels

        Returns:
            {'boxes', 'classes', 'scores', 'labels'} (in a list for list input)
        """
        batched = is_batched(images)
        check_single_image(images, batched, "Object detection")

        images = prepare_images(images)
        sizes = None if percentage else image_sizes(images)

        inputs = await self.processor(images)
        outputs = await self.model(inputs)

        processed = self.processor.feature_extractor.post_process_object_detection(
            outputs, threshold, sizes
        )
        label_detections(processed, self.id2label)

        return unwrap(processed, self.unwrap_policy, batched=batched)
