"""
Pytest configuration and shared fixtures

Provides lightweight fake collaborators (tokenizer, model, processor) so the
pipelines can be exercised without downloading any weights.
"""

import re
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pytest
from PIL import Image

from inference_pipelines.types import ModelOutputs


class FakeTokenizer:
    """
    Word-level tokenizer over a fixed vocabulary.

    Ids 0-4 are [CLS], [SEP], [PAD], [MASK], [UNK]; every text is encoded as
    ``[CLS] words [SEP]`` (plus ``pair words [SEP]`` for text pairs).
    """

    SPECIAL_TOKENS = ("[CLS]", "[SEP]", "[PAD]", "[MASK]", "[UNK]")
    CLS, SEP, PAD, MASK, UNK = range(5)

    def __init__(self, words=()):
        self.vocab = list(self.SPECIAL_TOKENS) + list(words)
        self._ids = {token.lower(): index for index, token in enumerate(self.vocab)}
        self.mask_token = "[MASK]"
        self.mask_token_id = self.MASK
        self.sep_token_id = self.SEP
        self.padding_side = "right"
        self.calls: List[Dict[str, Any]] = []
        self.asr_calls: List[Dict[str, Any]] = []

    def token_id(self, word: str) -> int:
        return self._ids[word.lower()]

    def encode(self, text: str) -> List[int]:
        words = re.findall(r"\[[a-z]+\]|\w+", text.lower())
        return [self._ids.get(word, self.UNK) for word in words]

    def __call__(self, texts, text_pair=None, padding=False, truncation=False):
        self.calls.append({"texts": texts, "text_pair": text_pair,
                           "padding": padding, "truncation": truncation})
        texts = [texts] if isinstance(texts, str) else list(texts)
        if text_pair is not None:
            text_pair = [text_pair] if isinstance(text_pair, str) else list(text_pair)

        rows = []
        for i, text in enumerate(texts):
            ids = [self.CLS] + self.encode(text) + [self.SEP]
            if text_pair is not None:
                ids += self.encode(text_pair[i]) + [self.SEP]
            rows.append(ids)

        width = max(len(row) for row in rows)
        input_ids, attention_mask = [], []
        for row in rows:
            padding_ids = [self.PAD] * (width - len(row))
            if self.padding_side == "left":
                input_ids.append(padding_ids + row)
                attention_mask.append([0] * len(padding_ids) + [1] * len(row))
            else:
                input_ids.append(row + padding_ids)
                attention_mask.append([1] * len(row) + [0] * len(padding_ids))

        return {"input_ids": np.array(input_ids), "attention_mask": np.array(attention_mask)}

    def decode(self, ids, skip_special_tokens=False) -> str:
        tokens = [self.vocab[int(i)] for i in ids]
        if skip_special_tokens:
            tokens = [t for t in tokens if t not in self.SPECIAL_TOKENS or t == "[UNK]"]
        return " ".join(tokens)

    def batch_decode(self, batch, skip_special_tokens=False) -> List[str]:
        return [self.decode(ids, skip_special_tokens=skip_special_tokens) for ids in batch]

    def decode_asr(self, chunks, *, time_precision, return_timestamps=False,
                   force_full_sequences=False):
        self.asr_calls.append({
            "strides": [chunk.stride for chunk in chunks],
            "time_precision": time_precision,
            "return_timestamps": return_timestamps,
            "force_full_sequences": force_full_sequences,
        })
        text = " ".join(self.decode(chunk.tokens, skip_special_tokens=True) for chunk in chunks)
        optional = {"chunks": [{"text": text}]} if return_timestamps else {}
        return text, optional


class FakeModel:
    """
    Model whose outputs come from plain functions of the inputs.

    Args:
        forward: inputs dict -> outputs dict
        generate: (inputs, options) -> [batch][sequences][tokens]
        **config: Attributes of ``model.config``
    """

    def __init__(self, forward: Optional[Callable] = None, generate: Optional[Callable] = None,
                 **config):
        self._forward = forward
        self._generate = generate
        self.config = SimpleNamespace(**{
            "id2label": {},
            "label2id": {},
            "prefix": None,
            "task_specific_params": None,
            "max_source_positions": 1500,
            **config,
        })
        self.calls: List[Dict[str, Any]] = []
        self.generate_calls: List[Dict[str, Any]] = []
        self.disposed = False

    async def __call__(self, inputs):
        self.calls.append(inputs)
        return ModelOutputs(self._forward(inputs))

    async def generate(self, inputs, options=None, attention_mask=None):
        self.generate_calls.append({"inputs": inputs, "options": options,
                                    "attention_mask": attention_mask})
        return self._generate(inputs, options)

    async def dispose(self):
        self.disposed = True


class FakeProcessor:
    """Audio -> input_features (the samples themselves), images -> zero pixel_values"""

    def __init__(self, sampling_rate: int = 16000, chunk_length: int = 30, **post_processors):
        self.feature_extractor = SimpleNamespace(
            config=SimpleNamespace(sampling_rate=sampling_rate, chunk_length=chunk_length),
            **post_processors,
        )
        self.calls: List[Any] = []

    async def __call__(self, inputs):
        self.calls.append(inputs)
        if isinstance(inputs, np.ndarray):
            return {"input_features": inputs[None, :]}
        return {"pixel_values": np.zeros((len(inputs), 3, 4, 4), dtype=np.float32)}


@pytest.fixture
def tokenizer() -> FakeTokenizer:
    """
    Tokenizer with a small English vocabulary

    Returns:
        FakeTokenizer
    """
    return FakeTokenizer([
        "hello", "world", "paris", "is", "the", "capital", "of", "france",
        "who", "wrote", "it", "ann", "did", "lives", "here", "once", "upon",
        "a", "time", "i", "lost", "my", "keys", "this", "example", "travel",
        "home", "photo", "cat", "dog", "bonjour", "monde",
    ])


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def image() -> Image.Image:
    """3x2 (width x height) RGB image"""
    return Image.new("RGB", (3, 2), color=(10, 20, 30))
