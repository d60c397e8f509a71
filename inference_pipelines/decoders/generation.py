"""
Helpers shared by the generative pipelines.
"""

from typing import Any, List, Mapping, Optional, Sequence


def flatten_generated(generated: Sequence[Sequence[Any]]) -> List[Any]:
    """Drop the batch level of a [batch][sequences][tokens] result."""
    return [sequence for item in generated for sequence in item]


def apply_prefixes(texts: Sequence[str], config: Any, task: str) -> List[str]:
    """
    Prepend the model's global prefix, then the task-specific prefix.

    The task-specific prefix is looked up with the full task name so that
    variants such as ``translation_en_to_fr`` pick their own prefix.
    """
    texts = list(texts)

    prefix = getattr(config, "prefix", None)
    if prefix:
        texts = [prefix + text for text in texts]

    task_params = task_specific_params(config, task)
    if task_params and task_params.get("prefix"):
        texts = [task_params["prefix"] + text for text in texts]

    return texts


def task_specific_params(config: Any, task: str) -> Optional[Mapping[str, Any]]:
    params = getattr(config, "task_specific_params", None)
    if params and task in params:
        return params[task]
    return None


def wrap_key(texts: Sequence[str], key: Optional[str]) -> List[Any]:
    """Wrap each string as ``{key: text}``; plain strings when ``key`` is None."""
    if key is None:
        return list(texts)
    return [{key: text} for text in texts]


def with_prompt(prompt: str, continuations: Sequence[str]) -> List[dict]:
    """Causal LM results: the trimmed prompt followed by each continuation."""
    start_text = prompt.strip()
    return [{"generated_text": start_text + text} for text in continuations]
