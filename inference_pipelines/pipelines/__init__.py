"""
Pipelines Module - Task-specific pipelines

Each pipeline file handles ONE task family and composes a decoder from
``inference_pipelines.decoders`` with tokenizer/model/processor calls.
The registry maps task names to these classes.
"""

from .base import BasePipeline
from .feature_extraction import FeatureExtractionPipeline
from .fill_mask import FillMaskPipeline
from .image_classification import ImageClassificationPipeline
from .image_segmentation import ImageSegmentationPipeline
from .image_to_text import ImageToTextPipeline
from .object_detection import ObjectDetectionPipeline
from .question_answering import QuestionAnsweringPipeline
from .speech_recognition import AutomaticSpeechRecognitionPipeline
from .text2text import SummarizationPipeline, Text2TextGenerationPipeline, TranslationPipeline
from .text_classification import TextClassificationPipeline
from .text_generation import TextGenerationPipeline
from .token_classification import TokenClassificationPipeline
from .zero_shot_classification import ZeroShotClassificationPipeline
from .zero_shot_image_classification import ZeroShotImageClassificationPipeline

__all__ = [
    # Base
    "BasePipeline",
    # Text
    "TextClassificationPipeline",
    "TokenClassificationPipeline",
    "QuestionAnsweringPipeline",
    "FillMaskPipeline",
    "Text2TextGenerationPipeline",
    "SummarizationPipeline",
    "TranslationPipeline",
    "TextGenerationPipeline",
    "ZeroShotClassificationPipeline",
    "FeatureExtractionPipeline",
    # Multimodal
    "AutomaticSpeechRecognitionPipeline",
    "ImageToTextPipeline",
    "ImageClassificationPipeline",
    "ImageSegmentationPipeline",
    "ZeroShotImageClassificationPipeline",
    "ObjectDetectionPipeline",
]
