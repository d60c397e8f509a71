"""
PipelineFactory - Task name in, ready pipeline out

1. Alias resolution (exact match, else the name as given)
2. Registry lookup on the first "_" segment of the name
3. Default model when none is given (logged, not an error)
4. Concurrent collaborator loading, failing fast on the first error
5. Construction, then a "ready" progress event
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .config import PretrainedOptions
from .pipelines.base import BasePipeline
from .registry import SUPPORTED_TASKS, TASK_ALIASES, TaskDescriptor, lookup, resolve_alias
from .types import CollaboratorKind, LoadingStatus

logger = logging.getLogger(__name__)
PREFIX = "[PipelineFactory]"


def dispatch_callback(callback: Optional[Callable[[Dict[str, Any]], Any]],
                      event: Dict[str, Any]) -> None:
    """Send a progress event to the caller's callback, if one was given."""
    if callback is not None:
        callback(event)


class PipelineFactory:
    """
    Builds pipelines from an explicit task table.

    The default table is the module-level registry; tests and embedders can
    pass their own.
    """

    def __init__(self, tasks: Mapping[str, TaskDescriptor] = SUPPORTED_TASKS,
                 aliases: Mapping[str, str] = TASK_ALIASES):
        self.tasks = tasks
        self.aliases = aliases

    def resolve(self, task: str) -> TaskDescriptor:
        """
        Resolve a task name or alias to its descriptor.

        Raises:
            UnsupportedTaskError: Unknown task, listing the registered ones
        """
        return lookup(resolve_alias(task, self.aliases), self.tasks)

    async def _load(self, descriptor: TaskDescriptor, kind: CollaboratorKind, model_id: str,
                    options: PretrainedOptions) -> Any:
        dispatch_callback(options.progress_callback, {
            "status": LoadingStatus.INITIATE.value,
            "name": model_id,
            "kind": kind.value,
        })
        collaborator = await descriptor.loader(kind).from_pretrained(model_id, options)
        dispatch_callback(options.progress_callback, {
            "status": LoadingStatus.DONE.value,
            "name": model_id,
            "kind": kind.value,
        })
        return collaborator

    async def create_pipeline(self, task: str, model: Optional[str] = None,
                              **options: Any) -> BasePipeline:
        """
        Create a ready-to-use pipeline.

        Args:
            task: Task name, alias or variant (e.g. 'translation_en_to_fr')
            model: Model id; the task's default model when omitted
            **options: PretrainedOptions fields (quantized, progress_callback,
                config, cache_dir, local_files_only, revision)

        Returns:
            Pipeline owning its freshly loaded collaborators
        """
        task = resolve_alias(task, self.aliases)
        descriptor = lookup(task, self.tasks)
        pretrained_options = PretrainedOptions(**options)

        if model is None:
            model = descriptor.default_model
            logger.info(f'{PREFIX} No model specified. Using default model: "{model}".')

        logger.info(f"{PREFIX} Creating pipeline for task: {task}, modelId: {model}")

        loads = {
            kind: asyncio.ensure_future(self._load(descriptor, kind, model, pretrained_options))
            for kind in descriptor.collaborators
        }
        try:
            await asyncio.gather(*loads.values())
        except BaseException:
            for pending in loads.values():
                pending.cancel()
            raise

        collaborators = {kind.value: future.result() for kind, future in loads.items()}
        pipe = descriptor.pipeline(task, **collaborators)
        logger.info(f"{PREFIX} Using {descriptor.pipeline.__name__}")

        dispatch_callback(pretrained_options.progress_callback, {
            "status": LoadingStatus.READY.value,
            "task": task,
            "model": model,
        })
        return pipe


# Default factory over the built-in registry
_default_factory = PipelineFactory()


async def pipeline(task: str, model: Optional[str] = None, **options: Any) -> BasePipeline:
    """
    Create a pipeline for ``task``.

    Example:
        classifier = await pipeline("sentiment-analysis")
        await classifier("I love this!")
    """
    return await _default_factory.create_pipeline(task, model, **options)
