"""
FeatureExtractionPipeline - Text embedding generation

For: Sentence-transformers style encoders (all-MiniLM, E5, BGE, ...)
Mean pooling over the last hidden state followed by L2 normalisation.
"""

from typing import Any

import numpy as np

from ..decoders.features import mean_pooling, normalize, similarity
from ..decoders.unwrap import is_batched, unwrap
from ..types import PipelineTask
from .base import BasePipeline


class FeatureExtractionPipeline(BasePipeline):
    """
    Embedding generation pipeline.

    A single text yields a 1-D embedding, a list of texts a 2-D array.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.FEATURE_EXTRACTION.value

    async def invoke(self, texts: Any, normalize_embeddings: bool = True) -> np.ndarray:
        inputs, outputs = await self._run(texts)

        embeddings = mean_pooling(outputs.last_hidden_state, inputs["attention_mask"])
        if normalize_embeddings:
            normalize(embeddings)

        return unwrap(embeddings, self.unwrap_policy, batched=is_batched(texts))

    @staticmethod
    def cos_sim(a, b, is_normalized: bool = False) -> float:
        """Cosine similarity; pass ``is_normalized`` for embeddings from this pipeline."""
        return similarity(a, b, is_normalized)
