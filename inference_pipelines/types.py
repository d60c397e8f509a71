"""
Pipeline Types - Type-safe constants, enums and result shapes

NO string literals! All task types defined as constants.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence, Tuple, TypedDict

import numpy as np


class PipelineTask(str, Enum):
    """
    Pipeline task types (type-safe enum).

    Use these constants instead of string literals!
    """
    TEXT_CLASSIFICATION = "text-classification"
    TOKEN_CLASSIFICATION = "token-classification"
    QUESTION_ANSWERING = "question-answering"
    FILL_MASK = "fill-mask"
    SUMMARIZATION = "summarization"
    TRANSLATION = "translation"
    TEXT2TEXT_GENERATION = "text2text-generation"
    TEXT_GENERATION = "text-generation"
    ZERO_SHOT_CLASSIFICATION = "zero-shot-classification"
    AUTOMATIC_SPEECH_RECOGNITION = "automatic-speech-recognition"
    IMAGE_TO_TEXT = "image-to-text"
    IMAGE_CLASSIFICATION = "image-classification"
    IMAGE_SEGMENTATION = "image-segmentation"
    ZERO_SHOT_IMAGE_CLASSIFICATION = "zero-shot-image-classification"
    OBJECT_DETECTION = "object-detection"
    FEATURE_EXTRACTION = "feature-extraction"


# Type alias for pipeline task strings
PipelineTaskType = Literal[
    "text-classification",
    "token-classification",
    "question-answering",
    "fill-mask",
    "summarization",
    "translation",
    "text2text-generation",
    "text-generation",
    "zero-shot-classification",
    "automatic-speech-recognition",
    "image-to-text",
    "image-classification",
    "image-segmentation",
    "zero-shot-image-classification",
    "object-detection",
    "feature-extraction",
]


class TaskCategory(str, Enum):
    """Input modality family of a task"""
    TEXT = "text"
    MULTIMODAL = "multimodal"


class CollaboratorKind(str, Enum):
    """Collaborators a pipeline can own"""
    TOKENIZER = "tokenizer"
    MODEL = "model"
    PROCESSOR = "processor"


class LoadingStatus(str, Enum):
    """Status values dispatched to progress callbacks"""
    INITIATE = "initiate"
    DONE = "done"
    READY = "ready"


class SegmentationSubtask(str, Enum):
    """Segmentation subtasks in probing priority order"""
    PANOPTIC = "panoptic"
    INSTANCE = "instance"
    SEMANTIC = "semantic"


# ============================================================================
# Result shapes
# ============================================================================

class LabelScore(TypedDict):
    label: str
    score: float


class TokenPrediction(TypedDict):
    entity: str
    score: float
    index: int
    word: str
    start: Optional[int]
    end: Optional[int]


class AnswerSpan(TypedDict):
    answer: str
    score: float


class MaskPrediction(TypedDict):
    score: float
    token: int
    token_str: str
    sequence: str


class ZeroShotResult(TypedDict):
    sequence: str
    labels: List[str]
    scores: List[float]


class GeneratedText(TypedDict):
    generated_text: str


class Transcription(TypedDict, total=False):
    text: str
    chunks: List[Dict[str, Any]]


class Segment(TypedDict):
    id: int
    score: float
    label: str
    mask: Any  # PIL.Image.Image, mode "L"


class Detection(TypedDict, total=False):
    boxes: List[List[float]]
    classes: List[int]
    scores: List[float]
    labels: List[str]


# Stride triple: (chunk length, left overlap, right overlap)
Stride = Tuple[float, float, float]


class ModelOutputs(dict):
    """
    Named model output tensors with attribute access.

    Mirrors transformers' ModelOutput: ``outputs.logits`` and
    ``outputs["logits"]`` are the same array.
    """

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None


# ============================================================================
# Collaborator contracts
# ============================================================================

class Tokenizer(Protocol):
    """Text <-> token id collaborator"""
    padding_side: str
    mask_token: Optional[str]
    mask_token_id: Optional[int]
    sep_token_id: Optional[int]
    vocab: Sequence[str]

    def __call__(self, texts: Any, *, text_pair: Any = None, padding: bool = False,
                 truncation: bool = False) -> Dict[str, np.ndarray]: ...

    def decode(self, ids: Sequence[int], skip_special_tokens: bool = False) -> str: ...

    def batch_decode(self, batch: Sequence[Sequence[int]], skip_special_tokens: bool = False) -> List[str]: ...


class Model(Protocol):
    """Tensor execution collaborator"""
    config: Any

    async def __call__(self, inputs: Dict[str, np.ndarray]) -> ModelOutputs: ...

    async def generate(self, inputs: np.ndarray, options: Optional[Dict[str, Any]] = None,
                       attention_mask: Optional[np.ndarray] = None) -> List[List[List[int]]]: ...

    async def dispose(self) -> None: ...


class Processor(Protocol):
    """Raw media -> feature tensors collaborator"""
    feature_extractor: Any

    async def __call__(self, inputs: Any) -> Dict[str, np.ndarray]: ...
