"""
Task Registry - Immutable task table

Maps every supported task to its pipeline class, the collaborators it needs
(in construction order), a default model and its input category.

Built once at import time and handed to the PipelineFactory explicitly.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Type

from .backends import AutoLoader, model_loader, processor_loader, tokenizer_loader
from .config import TASK_VARIANT_DELIMITER
from .errors import UnsupportedTaskError
from .pipelines import (
    AutomaticSpeechRecognitionPipeline,
    BasePipeline,
    FeatureExtractionPipeline,
    FillMaskPipeline,
    ImageClassificationPipeline,
    ImageSegmentationPipeline,
    ImageToTextPipeline,
    ObjectDetectionPipeline,
    QuestionAnsweringPipeline,
    SummarizationPipeline,
    Text2TextGenerationPipeline,
    TextClassificationPipeline,
    TextGenerationPipeline,
    TokenClassificationPipeline,
    TranslationPipeline,
    ZeroShotClassificationPipeline,
    ZeroShotImageClassificationPipeline,
)
from .types import CollaboratorKind, PipelineTask, TaskCategory


@dataclass(frozen=True)
class TaskDescriptor:
    """
    Everything the factory needs to build one task's pipeline.

    Only the loaders that are set are required; ``collaborators`` lists their
    kinds in the order the pipeline receives them.
    """
    task: PipelineTask
    pipeline: Type[BasePipeline]
    default_model: str
    category: TaskCategory
    model: AutoLoader
    tokenizer: Optional[AutoLoader] = None
    processor: Optional[AutoLoader] = None

    @property
    def collaborators(self) -> Tuple[CollaboratorKind, ...]:
        kinds = (
            (CollaboratorKind.TOKENIZER, self.tokenizer),
            (CollaboratorKind.MODEL, self.model),
            (CollaboratorKind.PROCESSOR, self.processor),
        )
        return tuple(kind for kind, loader in kinds if loader is not None)

    def loader(self, kind: CollaboratorKind) -> AutoLoader:
        return getattr(self, kind.value)


def _text(task: PipelineTask, pipeline: Type[BasePipeline], auto_model: str,
          default_model: str) -> TaskDescriptor:
    return TaskDescriptor(
        task=task,
        pipeline=pipeline,
        default_model=default_model,
        category=TaskCategory.TEXT,
        tokenizer=tokenizer_loader(),
        model=model_loader(auto_model),
    )


def _multimodal(task: PipelineTask, pipeline: Type[BasePipeline], auto_models: Tuple[str, ...],
                default_model: str, with_tokenizer: bool = False) -> TaskDescriptor:
    return TaskDescriptor(
        task=task,
        pipeline=pipeline,
        default_model=default_model,
        category=TaskCategory.MULTIMODAL,
        tokenizer=tokenizer_loader() if with_tokenizer else None,
        model=model_loader(*auto_models),
        processor=processor_loader(),
    )


_DESCRIPTORS = (
    # ========================================================================
    # Text
    # ========================================================================
    _text(PipelineTask.TEXT_CLASSIFICATION, TextClassificationPipeline,
          "AutoModelForSequenceClassification", "distilbert-base-uncased-finetuned-sst-2-english"),
    _text(PipelineTask.TOKEN_CLASSIFICATION, TokenClassificationPipeline,
          "AutoModelForTokenClassification", "Davlan/bert-base-multilingual-cased-ner-hrl"),
    _text(PipelineTask.QUESTION_ANSWERING, QuestionAnsweringPipeline,
          "AutoModelForQuestionAnswering", "distilbert-base-cased-distilled-squad"),
    _text(PipelineTask.FILL_MASK, FillMaskPipeline,
          "AutoModelForMaskedLM", "bert-base-uncased"),
    _text(PipelineTask.SUMMARIZATION, SummarizationPipeline,
          "AutoModelForSeq2SeqLM", "sshleifer/distilbart-cnn-6-6"),
    _text(PipelineTask.TRANSLATION, TranslationPipeline,
          "AutoModelForSeq2SeqLM", "t5-small"),
    _text(PipelineTask.TEXT2TEXT_GENERATION, Text2TextGenerationPipeline,
          "AutoModelForSeq2SeqLM", "google/flan-t5-small"),
    _text(PipelineTask.TEXT_GENERATION, TextGenerationPipeline,
          "AutoModelForCausalLM", "gpt2"),
    _text(PipelineTask.ZERO_SHOT_CLASSIFICATION, ZeroShotClassificationPipeline,
          "AutoModelForSequenceClassification", "typeform/distilbert-base-uncased-mnli"),
    _text(PipelineTask.FEATURE_EXTRACTION, FeatureExtractionPipeline,
          "AutoModel", "sentence-transformers/all-MiniLM-L6-v2"),

    # ========================================================================
    # Multimodal
    # ========================================================================
    _multimodal(PipelineTask.AUTOMATIC_SPEECH_RECOGNITION, AutomaticSpeechRecognitionPipeline,
                ("AutoModelForSpeechSeq2Seq",), "openai/whisper-tiny.en", with_tokenizer=True),
    _multimodal(PipelineTask.IMAGE_TO_TEXT, ImageToTextPipeline,
                ("AutoModelForVision2Seq", "AutoModelForImageTextToText"),
                "nlpconnect/vit-gpt2-image-captioning", with_tokenizer=True),
    _multimodal(PipelineTask.IMAGE_CLASSIFICATION, ImageClassificationPipeline,
                ("AutoModelForImageClassification",), "google/vit-base-patch16-224"),
    _multimodal(PipelineTask.IMAGE_SEGMENTATION, ImageSegmentationPipeline,
                ("AutoModelForImageSegmentation",), "facebook/detr-resnet-50-panoptic"),
    _multimodal(PipelineTask.ZERO_SHOT_IMAGE_CLASSIFICATION, ZeroShotImageClassificationPipeline,
                ("AutoModel",), "openai/clip-vit-base-patch32", with_tokenizer=True),
    _multimodal(PipelineTask.OBJECT_DETECTION, ObjectDetectionPipeline,
                ("AutoModelForObjectDetection",), "facebook/detr-resnet-50"),
)

SUPPORTED_TASKS: Mapping[str, TaskDescriptor] = MappingProxyType(
    {descriptor.task.value: descriptor for descriptor in _DESCRIPTORS}
)

TASK_ALIASES: Mapping[str, str] = MappingProxyType({
    "sentiment-analysis": PipelineTask.TEXT_CLASSIFICATION.value,
    "ner": PipelineTask.TOKEN_CLASSIFICATION.value,
    "embeddings": PipelineTask.FEATURE_EXTRACTION.value,
})


def resolve_alias(task: str, aliases: Mapping[str, str] = TASK_ALIASES) -> str:
    """Exact alias match first, otherwise the name as given."""
    return aliases.get(task, task)


def lookup(task: str, tasks: Mapping[str, TaskDescriptor] = SUPPORTED_TASKS) -> TaskDescriptor:
    """
    Find the descriptor for an (already alias-resolved) task name.

    Only the first ``_``-separated segment is used as the key, so
    ``translation_en_to_fr`` resolves to ``translation``.

    Raises:
        UnsupportedTaskError: No registered task matches
    """
    key = task.split(TASK_VARIANT_DELIMITER)[0]
    descriptor = tasks.get(key)
    if descriptor is None:
        raise UnsupportedTaskError(task, list(tasks))
    return descriptor
