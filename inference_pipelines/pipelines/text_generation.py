"""
TextGenerationPipeline - Causal language model generation

For: GPT-like decoder-only models
"""

import logging
from typing import Any

from ..decoders.generation import with_prompt
from ..decoders.unwrap import UnwrapPolicy, unwrap
from ..types import PipelineTask
from .base import BasePipeline

logger = logging.getLogger(__name__)


class TextGenerationPipeline(BasePipeline):
    """
    Text generation pipeline.

    Prompts are left-padded so every continuation starts right after its
    prompt. Each result is the trimmed prompt followed by the continuation.
    """

    unwrap_policy = UnwrapPolicy.SINGLE_PROMPT

    def pipeline_type(self) -> str:
        return PipelineTask.TEXT_GENERATION.value

    async def invoke(self, texts: Any, **generate_kwargs: Any) -> Any:
        """
        Continue prompt(s).

        Args:
            texts: A prompt or a list of prompts
            **generate_kwargs: Generation options forwarded to the model

        Returns:
            Per prompt, a list of {'generated_text': ...} (one per returned sequence)
        """
        string_input = isinstance(texts, str)
        if string_input:
            texts = [texts]

        self.tokenizer.padding_side = "left"
        inputs = self.tokenizer(texts, padding=True, truncation=True)

        generate_kwargs = dict(generate_kwargs)
        pad_token_id = getattr(self.tokenizer, "pad_token_id", None)
        if pad_token_id is not None:
            generate_kwargs.setdefault("pad_token_id", pad_token_id)

        logger.debug(f"[TextGeneration] Generating for {len(texts)} prompt(s)")
        generated = await self.model.generate(
            inputs["input_ids"],
            generate_kwargs,
            attention_mask=inputs["attention_mask"],
        )

        results = [
            with_prompt(texts[i], self.tokenizer.batch_decode(sequences, skip_special_tokens=True))
            for i, sequences in enumerate(generated)
        ]
        return unwrap(results, self.unwrap_policy, batched=not string_input)
