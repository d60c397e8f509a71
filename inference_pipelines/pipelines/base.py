"""
BasePipeline - Abstract base class for all task pipelines

Each task pipeline inherits from this and implements:
- pipeline_type() - Task identifier
- invoke() - Encode, run the model, decode

Pipelines own their tokenizer/model/processor exclusively; the factory hands
them over already loaded.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from ..decoders.unwrap import UnwrapPolicy
from ..types import ModelOutputs

logger = logging.getLogger(__name__)


class BasePipeline(ABC):
    """
    Base class for all task pipelines.

    Provides the shared tokenize-then-run step and enforces a consistent API:
    ``await pipe(inputs, **options)`` and ``await pipe.dispose()``.
    """

    # How batched decoder results are reshaped for the caller
    unwrap_policy: UnwrapPolicy = UnwrapPolicy.BATCH

    def __init__(self, task: str, tokenizer: Any = None, model: Any = None,
                 processor: Any = None):
        self.task = task
        self.tokenizer = tokenizer
        self.model = model
        self.processor = processor

    @abstractmethod
    def pipeline_type(self) -> str:
        """Return the pipeline type (e.g., 'text-classification')"""
        pass

    @abstractmethod
    async def invoke(self, inputs: Any, *args: Any, **options: Any) -> Any:
        """
        Run the task on ``inputs``.

        A scalar input yields a scalar-shaped result and a sequence input a
        sequence of equal length, unless the pipeline's unwrap policy says
        otherwise.
        """
        pass

    async def __call__(self, inputs: Any, *args: Any, **options: Any) -> Any:
        return await self.invoke(inputs, *args, **options)

    async def dispose(self) -> None:
        """Release the model's resources. Call at most once."""
        logger.debug(f"[{self.__class__.__name__}] Disposing model for task {self.task}")
        await self.model.dispose()

    async def _run(self, texts: Any) -> Tuple[Dict[str, Any], ModelOutputs]:
        """
        Tokenize with padding and truncation, then run the model.

        Returns:
            (encoded inputs, raw model outputs)
        """
        inputs = self.tokenizer(texts, padding=True, truncation=True)
        outputs = await self.model(inputs)
        return inputs, outputs

    @property
    def id2label(self) -> Dict[Any, str]:
        return self.model.config.id2label

    def get_config(self) -> Optional[Dict[str, Any]]:
        """Get current configuration"""
        return {
            "task": self.task,
            "pipeline_type": self.pipeline_type(),
            "has_tokenizer": self.tokenizer is not None,
            "has_processor": self.processor is not None,
        }
