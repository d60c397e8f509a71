# Inference Pipelines Configuration
"""
Strongly typed configuration for pipeline construction and decoding defaults.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# Logging configuration
LOG_FORMAT: str = "%(levelname)s: %(message)s"

# Hub defaults
DEFAULT_REVISION: str = "main"

# Registry keys may carry a variant suffix after this delimiter (translation_en_to_fr)
TASK_VARIANT_DELIMITER: str = "_"


@dataclass(frozen=True)
class PipelineDefaults:
    """Decoding defaults shared by the task pipelines"""

    # Classification family
    classification_topk: int = 1
    fill_mask_topk: int = 5
    question_answering_topk: int = 1
    ignore_labels: tuple = ("O",)

    # Zero-shot
    nli_hypothesis_template: str = "This example is {}."
    image_hypothesis_template: str = "This is a photo of {}"
    entailment_fallback_id: int = 2
    contradiction_fallback_id: int = 0

    # Speech recognition
    chunk_length_s: float = 0
    stride_divisor: int = 6  # stride_length_s = chunk_length_s / stride_divisor

    # Vision
    segmentation_threshold: float = 0.5
    mask_threshold: float = 0.5
    overlap_mask_area_threshold: float = 0.8
    detection_threshold: float = 0.9


# Global defaults instance
PIPELINE_DEFAULTS = PipelineDefaults()


class PretrainedOptions(BaseModel):
    """Options forwarded to every collaborator's from_pretrained()"""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    quantized: bool = Field(True, description="Prefer quantized weights when the backend supports them")
    progress_callback: Optional[Callable[[Dict[str, Any]], Any]] = Field(
        None, description="Called with status events while loading"
    )
    config: Optional[Any] = Field(None, description="Model config overriding the hub one")
    cache_dir: Optional[str] = Field(None, description="Directory for downloaded files")
    local_files_only: bool = Field(False, description="Never touch the network")
    revision: str = Field(DEFAULT_REVISION, description="Hub branch, tag or commit")


def setup_logging(verbose: int) -> None:
    """
    Setup logging based on verbosity level.

    Args:
        verbose: Verbosity count (0=WARNING, 1=INFO, 2+=DEBUG)
    """
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT
    )
