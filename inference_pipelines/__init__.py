"""
Inference Pipelines - Task pipelines over pretrained models

Resolve a task name to a pipeline, load its tokenizer/model/processor
concurrently, and decode model outputs into task results.

Usage:
    from inference_pipelines import pipeline

    classifier = await pipeline("sentiment-analysis")
    await classifier("I love transformers!")
    # [{'label': 'POSITIVE', 'score': 0.9998}]
    await classifier.dispose()
"""

from .config import PIPELINE_DEFAULTS, PipelineDefaults, PretrainedOptions, setup_logging
from .errors import (
    CollaboratorLoadError,
    MissingTokenError,
    PipelineError,
    UnsupportedSubtaskError,
    UnsupportedTaskError,
    ValidationError,
)
from .factory import PipelineFactory, pipeline
from .maths import cos_sim
from .pipelines import *  # noqa: F401,F403
from .pipelines import __all__ as _pipeline_names
from .registry import SUPPORTED_TASKS, TASK_ALIASES, TaskDescriptor
from .types import PipelineTask

__version__ = "0.1.0"

__all__ = [
    "pipeline",
    "PipelineFactory",
    "SUPPORTED_TASKS",
    "TASK_ALIASES",
    "TaskDescriptor",
    "PipelineTask",
    "PretrainedOptions",
    "PipelineDefaults",
    "PIPELINE_DEFAULTS",
    "setup_logging",
    "cos_sim",
    "PipelineError",
    "UnsupportedTaskError",
    "ValidationError",
    "UnsupportedSubtaskError",
    "MissingTokenError",
    "CollaboratorLoadError",
    *_pipeline_names,
]
