"""
Segmentation and detection post-processing.
"""

from typing import Any, Callable, List, Mapping, Optional, Tuple

import numpy as np
from PIL import Image

from ..errors import UnsupportedSubtaskError, ValidationError
from ..types import Detection, Segment, SegmentationSubtask
from .classification import lookup_label

# Subtask -> processor post-processing capability, in probing priority order
SUBTASK_POST_PROCESSORS = {
    SegmentationSubtask.PANOPTIC.value: "post_process_panoptic_segmentation",
    SegmentationSubtask.INSTANCE.value: "post_process_instance_segmentation",
    SegmentationSubtask.SEMANTIC.value: "post_process_semantic_segmentation",
}


def check_single_image(images: Any, batched: bool, task_label: str) -> None:
    if batched and len(images) != 1:
        raise ValidationError(f"{task_label} pipeline currently only supports a batch size of 1.")


def select_post_processor(feature_extractor: Any, subtask: Optional[str]
                          ) -> Tuple[Optional[str], Optional[Callable]]:
    """
    Pick the post-processing routine for a segmentation subtask.

    An explicit subtask maps directly to its routine. Without one, the first
    capability the processor offers wins, in panoptic, instance, semantic order.

    Returns:
        (subtask, routine); the routine is None if the processor lacks it.
    """
    if subtask is not None:
        name = SUBTASK_POST_PROCESSORS.get(subtask)
        fn = getattr(feature_extractor, name, None) if name else None
        return subtask, fn

    for candidate, name in SUBTASK_POST_PROCESSORS.items():
        fn = getattr(feature_extractor, name, None)
        if fn is not None:
            return candidate, fn
    return None, None


def segment_mask(segmentation: np.ndarray, segment_id: int) -> Image.Image:
    """Binary mask image: 255 where the segmentation map equals ``segment_id``."""
    data = np.where(np.asarray(segmentation) == segment_id, 255, 0).astype(np.uint8)
    return Image.fromarray(data)


def decode_segments(processed: Mapping[str, Any], id2label: Mapping[Any, str]) -> List[Segment]:
    """
    Annotate each segment of a post-processed panoptic/instance result.

    Args:
        processed: ``{"segmentation": [H, W] id map, "segments_info": [...]}``
        id2label: Model's index -> label table
    """
    segmentation = np.asarray(processed["segmentation"])
    annotation: List[Segment] = []
    for segment in processed["segments_info"]:
        annotation.append({
            "id": int(segment["id"]),
            "score": float(segment["score"]),
            "label": lookup_label(id2label, int(segment["label_id"])),
            "mask": segment_mask(segmentation, segment["id"]),
        })
    return annotation


def ensure_supported_subtask(subtask: Optional[str], post_process: Optional[Callable]) -> None:
    """Only panoptic and instance results can be turned into segment masks."""
    if subtask not in (SegmentationSubtask.PANOPTIC.value, SegmentationSubtask.INSTANCE.value):
        raise UnsupportedSubtaskError(subtask)
    if post_process is None:
        raise UnsupportedSubtaskError(subtask)


def label_detections(processed: List[Detection], id2label: Mapping[Any, str]) -> List[Detection]:
    """Attach label strings for every predicted class index."""
    for detection in processed:
        detection["labels"] = [lookup_label(id2label, int(c)) for c in detection["classes"]]
    return processed
