"""
ImageSegmentationPipeline - Panoptic / instance segmentation

For: Any ModelForImageSegmentation (DETR, MaskFormer, ...)
"""

import logging
from typing import Any, List, Optional, Sequence

from ..config import PIPELINE_DEFAULTS
from ..decoders.unwrap import UnwrapPolicy, is_batched
from ..decoders.vision import (
    check_single_image,
    decode_segments,
    ensure_supported_subtask,
    select_post_processor,
)
from ..media import image_sizes, prepare_images
from ..types import PipelineTask, Segment
from .base import BasePipeline

logger = logging.getLogger(__name__)


class ImageSegmentationPipeline(BasePipeline):
    """
    Image segmentation pipeline.

    Returns one annotation per segment: id, score, label and a binary mask
    image. Only one image per call is supported.
    """

    unwrap_policy = UnwrapPolicy.NEVER

    def pipeline_type(self) -> str:
        return PipelineTask.IMAGE_SEGMENTATION.value

    async def invoke(self, images: Any,
                     threshold: float = PIPELINE_DEFAULTS.segmentation_threshold,
                     mask_threshold: float = PIPELINE_DEFAULTS.mask_threshold,
                     overlap_mask_area_threshold: float = PIPELINE_DEFAULTS.overlap_mask_area_threshold,
                     label_ids_to_fuse: Optional[Sequence[int]] = None,
                     target_sizes: Optional[Sequence[tuple]] = None,
                     subtask: Optional[str] = None) -> List[Segment]:
        """
        Segment an image.

        Args:
            images: An image, or a list holding exactly one image
            threshold: Probability threshold to filter out predicted masks
            mask_threshold: Threshold used to binarise predicted masks
            overlap_mask_area_threshold: Overlap threshold to drop small, disconnected segments
            label_ids_to_fuse: Label ids whose instances are fused into one segment
            target_sizes: (height, width) per image; defaults to the input sizes
            subtask: 'panoptic', 'instance' or 'semantic'; probed from the
                processor in that order when not given

        Returns:
            List of {'id', 'score', 'label', 'mask'}
        """
        check_single_image(images, is_batched(images), "Image segmentation")

        images = prepare_images(images)
        sizes = image_sizes(images)

        inputs = await self.processor(images)
        outputs = await self.model(inputs)

        subtask, post_process = select_post_processor(self.processor.feature_extractor, subtask)
        ensure_supported_subtask(subtask, post_process)
        logger.debug(f"[ImageSegmentation] Post-processing as {subtask}")

        processed = post_process(
            outputs,
            threshold=threshold,
            mask_threshold=mask_threshold,
            overlap_mask_area_threshold=overlap_mask_area_threshold,
            label_ids_to_fuse=label_ids_to_fuse,
            target_sizes=target_sizes if target_sizes is not None else sizes,
        )[0]

        return decode_segments(processed, self.id2label)
