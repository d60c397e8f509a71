"""
Text2TextGenerationPipeline - Encoder-decoder generation

For: Seq2Seq LMs (T5, BART, Marian, NLLB, ...)
Variants: summarization, translation
"""

import logging
from typing import Any, Dict, List, Optional

from ..decoders.generation import apply_prefixes, flatten_generated, wrap_key
from ..decoders.unwrap import UnwrapPolicy, is_batched
from ..types import PipelineTask
from .base import BasePipeline

logger = logging.getLogger(__name__)


class Text2TextGenerationPipeline(BasePipeline):
    """
    Text-to-text generation pipeline.

    Applies the model's global and task-specific prefixes, generates, and
    decodes every returned sequence. Always returns a list.
    """

    unwrap_policy = UnwrapPolicy.NEVER

    # Field wrapping each decoded string; plain strings when None
    result_key: Optional[str] = None

    def pipeline_type(self) -> str:
        return PipelineTask.TEXT2TEXT_GENERATION.value

    def _encode(self, texts: List[str], generate_kwargs: Dict[str, Any]):
        """Token ids for ``texts``; variants may also adjust ``generate_kwargs``."""
        return self.tokenizer(texts, padding=True, truncation=True)["input_ids"]

    async def invoke(self, texts: Any, **generate_kwargs: Any) -> List[Any]:
        """
        Generate text from text(s).

        Args:
            texts: A string or a list of strings
            **generate_kwargs: Generation options forwarded to the model

        Returns:
            List of strings, or of {result_key: text} dicts
        """
        if not is_batched(texts):
            texts = [texts]
        generate_kwargs = dict(generate_kwargs)

        texts = apply_prefixes(texts, self.model.config, self.task)
        input_ids = self._encode(texts, generate_kwargs)

        logger.debug(f"[{self.__class__.__name__}] Generating for {len(texts)} input(s)")
        generated = await self.model.generate(input_ids, generate_kwargs)

        decoded = self.tokenizer.batch_decode(
            flatten_generated(generated),
            skip_special_tokens=True,
        )
        return wrap_key(decoded, self.result_key)


class SummarizationPipeline(Text2TextGenerationPipeline):
    """Summarization pipeline: results are {'summary_text': ...}"""

    result_key = "summary_text"

    def pipeline_type(self) -> str:
        return PipelineTask.SUMMARIZATION.value


class TranslationPipeline(Text2TextGenerationPipeline):
    """
    Translation pipeline: results are {'translation_text': ...}

    Multilingual tokenizers (NLLB, M2M100, ...) build their own inputs from
    ``src_lang``/``tgt_lang`` generation options.
    """

    result_key = "translation_text"

    def pipeline_type(self) -> str:
        return PipelineTask.TRANSLATION.value

    def _encode(self, texts: List[str], generate_kwargs: Dict[str, Any]):
        build_inputs = getattr(self.tokenizer, "build_translation_inputs", None)
        if build_inputs is None:
            return super()._encode(texts, generate_kwargs)

        tokenizer_options = {"padding": True, "truncation": True}
        return build_inputs(texts, tokenizer_options, generate_kwargs)["input_ids"]
