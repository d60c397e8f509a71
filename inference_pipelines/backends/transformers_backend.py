"""
HuggingFace Transformers collaborator backend.

Adapts transformers tokenizers, models and processors (running on torch) to
the collaborator contracts the pipelines expect:
- async from_pretrained() (blocking loads run in a worker thread)
- numpy arrays in, numpy arrays out
- generate() returns nested [batch][sequences][tokens] id lists
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import torch
import transformers

from ..config import PretrainedOptions
from ..errors import CollaboratorLoadError
from ..types import CollaboratorKind, ModelOutputs

logger = logging.getLogger(__name__)


def to_numpy(value: Any) -> Any:
    """Detach torch tensors to numpy; leave anything else untouched."""
    if isinstance(value, torch.Tensor):
        return value.detach().cpu().numpy()
    return value


def pretrained_kwargs(options: PretrainedOptions) -> Dict[str, Any]:
    """Map loading options onto transformers' from_pretrained() keywords."""
    kwargs: Dict[str, Any] = {
        "revision": options.revision,
        "local_files_only": options.local_files_only,
    }
    if options.cache_dir:
        kwargs["cache_dir"] = options.cache_dir
    return kwargs


def group_sequences(sequences: List[List[int]], num_return_sequences: int) -> List[List[List[int]]]:
    """Split generate()'s flat [batch * n, tokens] output into [batch][n][tokens]."""
    n = max(int(num_return_sequences or 1), 1)
    return [sequences[i:i + n] for i in range(0, len(sequences), n)]


def is_token_ids(inputs: Any) -> bool:
    """True for a [batch, tokens] integer array, i.e. a text prompt."""
    array = np.asarray(to_numpy(inputs))
    return array.ndim == 2 and np.issubdtype(array.dtype, np.integer)


class TorchModelOutputs(ModelOutputs):
    """Numpy view of a transformers ModelOutput; ``raw`` keeps the torch original."""

    def __init__(self, raw: Any):
        super().__init__({key: to_numpy(value) for key, value in raw.items()})
        self.raw = raw


# ============================================================================
# Tokenizer
# ============================================================================

class TransformersTokenizer:
    """Tokenizer collaborator backed by a transformers tokenizer"""

    def __init__(self, tokenizer: Any):
        # GPT-style tokenizers ship without a pad token; batches pad with EOS
        if getattr(tokenizer, "pad_token", None) is None and getattr(tokenizer, "eos_token", None) is not None:
            tokenizer.pad_token = tokenizer.eos_token
        self._tokenizer = tokenizer
        self._vocab: Optional[List[str]] = None

    @property
    def padding_side(self) -> str:
        return self._tokenizer.padding_side

    @padding_side.setter
    def padding_side(self, side: str) -> None:
        self._tokenizer.padding_side = side

    @property
    def mask_token(self) -> Optional[str]:
        return self._tokenizer.mask_token

    @property
    def mask_token_id(self) -> Optional[int]:
        return self._tokenizer.mask_token_id

    @property
    def sep_token_id(self) -> Optional[int]:
        return self._tokenizer.sep_token_id

    @property
    def pad_token_id(self) -> Optional[int]:
        return getattr(self._tokenizer, "pad_token_id", None)

    @property
    def vocab(self) -> List[str]:
        """id -> token table"""
        if self._vocab is None:
            vocab = self._tokenizer.get_vocab()
            table = [""] * (max(vocab.values()) + 1)
            for token, index in vocab.items():
                table[index] = token
            self._vocab = table
        return self._vocab

    def __call__(self, texts: Any, *, text_pair: Any = None, padding: bool = False,
                 truncation: bool = False) -> Dict[str, np.ndarray]:
        encoded = self._tokenizer(
            texts,
            text_pair=text_pair,
            padding=padding,
            truncation=truncation,
            return_tensors="np",
        )
        return dict(encoded)

    def decode(self, ids: Sequence[int], skip_special_tokens: bool = False) -> str:
        return self._tokenizer.decode([int(i) for i in ids], skip_special_tokens=skip_special_tokens)

    def batch_decode(self, batch: Sequence[Sequence[int]], skip_special_tokens: bool = False) -> List[str]:
        return self._tokenizer.batch_decode(
            [[int(i) for i in ids] for ids in batch],
            skip_special_tokens=skip_special_tokens,
        )

    def build_translation_inputs(self, texts: List[str], options: Dict[str, Any],
                                 generate_kwargs: Dict[str, Any]) -> Dict[str, np.ndarray]:
        """
        Encode for multilingual translation models.

        ``src_lang``/``tgt_lang`` are taken out of ``generate_kwargs``; the
        target language's forced BOS token is put back in.
        """
        build = getattr(self._tokenizer, "_build_translation_inputs", None)
        if build is None:
            return self(texts, **options)

        src_lang = generate_kwargs.pop("src_lang", None)
        tgt_lang = generate_kwargs.pop("tgt_lang", None)
        encoded = dict(build(texts, return_tensors="np", src_lang=src_lang, tgt_lang=tgt_lang, **options))

        forced_bos_token_id = encoded.pop("forced_bos_token_id", None)
        if forced_bos_token_id is not None:
            generate_kwargs["forced_bos_token_id"] = int(forced_bos_token_id)
        return encoded

    def decode_asr(self, chunks: Sequence[Any], *, time_precision: float,
                   return_timestamps: bool = False,
                   force_full_sequences: bool = False) -> Tuple[str, Dict[str, Any]]:
        """
        Merge generated chunks into one transcript.

        Whisper tokenizers reconcile overlapping strides themselves; other
        tokenizers get their chunks decoded and concatenated in order.
        """
        decode = getattr(self._tokenizer, "_decode_asr", None)
        if decode is None:
            texts = self.batch_decode([chunk.tokens for chunk in chunks], skip_special_tokens=True)
            return "".join(texts), {}

        if force_full_sequences:
            logger.debug("[Tokenizer] force_full_sequences has no effect on Whisper merging")

        model_outputs = [
            {"tokens": np.asarray([chunk.tokens]), "stride": chunk.stride}
            for chunk in chunks
        ]
        return decode(
            model_outputs,
            return_timestamps=return_timestamps,
            return_language=None,
            time_precision=time_precision,
        )


# ============================================================================
# Model
# ============================================================================

class TransformersModel:
    """Model collaborator backed by a transformers PreTrainedModel"""

    def __init__(self, model: Any, device: str = "cpu"):
        self._model = model
        self.config = model.config
        self.device = device

    def _tensors(self, inputs: Dict[str, Any]) -> Dict[str, torch.Tensor]:
        return {key: torch.as_tensor(value, device=self.device) for key, value in inputs.items()}

    async def __call__(self, inputs: Dict[str, Any]) -> TorchModelOutputs:
        def forward():
            with torch.no_grad():
                return self._model(**self._tensors(inputs))

        return TorchModelOutputs(await asyncio.to_thread(forward))

    async def generate(self, inputs: Any, options: Optional[Dict[str, Any]] = None,
                       attention_mask: Any = None) -> List[List[List[int]]]:
        """
        Autoregressive generation.

        Decoder-only models prompted with token ids return only the
        continuation, without the prompt. Pixel or feature inputs are not
        echoed back, so their output is kept whole.
        """
        options = dict(options or {})
        if attention_mask is not None:
            options["attention_mask"] = torch.as_tensor(attention_mask, device=self.device)

        def run():
            with torch.no_grad():
                return self._model.generate(torch.as_tensor(inputs, device=self.device), **options)

        output = await asyncio.to_thread(run)
        sequences = to_numpy(getattr(output, "sequences", output))

        if not getattr(self.config, "is_encoder_decoder", False) and is_token_ids(inputs):
            sequences = sequences[:, np.shape(inputs)[1]:]

        return group_sequences(sequences.tolist(), options.get("num_return_sequences", 1))

    async def dispose(self) -> None:
        """Unload model from memory"""
        del self._model
        if torch.cuda.is_available():
            torch.cuda.empty_cache()
        logger.info("[Model] Model unloaded")


# ============================================================================
# Processor
# ============================================================================

def _panoptic(fn: Callable, outputs: Any, *, threshold, mask_threshold,
              overlap_mask_area_threshold, label_ids_to_fuse, target_sizes) -> List[Dict[str, Any]]:
    results = fn(
        getattr(outputs, "raw", outputs),
        threshold=threshold,
        mask_threshold=mask_threshold,
        overlap_mask_area_threshold=overlap_mask_area_threshold,
        label_ids_to_fuse=set(label_ids_to_fuse) if label_ids_to_fuse else None,
        target_sizes=target_sizes,
    )
    return [{**result, "segmentation": to_numpy(result["segmentation"])} for result in results]


def _instance(fn: Callable, outputs: Any, *, threshold, mask_threshold,
              overlap_mask_area_threshold, label_ids_to_fuse, target_sizes) -> List[Dict[str, Any]]:
    results = fn(
        getattr(outputs, "raw", outputs),
        threshold=threshold,
        mask_threshold=mask_threshold,
        overlap_mask_area_threshold=overlap_mask_area_threshold,
        target_sizes=target_sizes,
    )
    return [{**result, "segmentation": to_numpy(result["segmentation"])} for result in results]


def _semantic(fn: Callable, outputs: Any, **kwargs) -> List[Any]:
    return [to_numpy(result) for result in fn(getattr(outputs, "raw", outputs),
                                              target_sizes=kwargs.get("target_sizes"))]


def _object_detection(fn: Callable, outputs: Any, threshold: float,
                      target_sizes: Optional[Sequence[tuple]]) -> List[Dict[str, Any]]:
    results = fn(getattr(outputs, "raw", outputs), threshold=threshold, target_sizes=target_sizes)
    return [
        {
            "boxes": to_numpy(result["boxes"]).tolist(),
            "classes": [int(c) for c in to_numpy(result["labels"])],
            "scores": [float(s) for s in to_numpy(result["scores"])],
        }
        for result in results
    ]


_POST_PROCESSORS = {
    "post_process_panoptic_segmentation": _panoptic,
    "post_process_instance_segmentation": _instance,
    "post_process_semantic_segmentation": _semantic,
    "post_process_object_detection": _object_detection,
}


class FeatureExtractorView:
    """
    Feature extractor facet of a processor.

    Exposes ``config.sampling_rate``/``config.chunk_length`` and only those
    post-processing routines the wrapped processor actually implements.
    """

    def __init__(self, processor: Any):
        target = (
            getattr(processor, "image_processor", None)
            or getattr(processor, "feature_extractor", None)
            or processor
        )
        self._target = target
        self.config = SimpleNamespace(
            sampling_rate=getattr(target, "sampling_rate", None),
            chunk_length=getattr(target, "chunk_length", None),
        )

    def __getattr__(self, name: str) -> Callable:
        wrapper = _POST_PROCESSORS.get(name)
        target = self.__dict__.get("_target")
        if wrapper is None or target is None or not hasattr(target, name):
            raise AttributeError(name)
        return partial(wrapper, getattr(target, name))


class TransformersProcessor:
    """Processor collaborator backed by a transformers processor"""

    def __init__(self, processor: Any):
        self._processor = processor
        self.feature_extractor = FeatureExtractorView(processor)

    async def __call__(self, inputs: Any) -> Dict[str, np.ndarray]:
        def run():
            if isinstance(inputs, np.ndarray):
                return self._processor(
                    inputs,
                    sampling_rate=self.feature_extractor.config.sampling_rate,
                    return_tensors="np",
                )
            return self._processor(images=inputs, return_tensors="np")

        encoded = await asyncio.to_thread(run)
        return {key: to_numpy(value) for key, value in encoded.items()}


# ============================================================================
# Loaders
# ============================================================================

@dataclass(frozen=True)
class AutoLoader:
    """
    Loads one collaborator kind through a transformers Auto* class.

    ``auto_classes`` are tried in order; the first one transformers provides
    is used.
    """
    kind: CollaboratorKind
    auto_classes: Tuple[str, ...]

    def resolve(self) -> Any:
        for name in self.auto_classes:
            auto_class = getattr(transformers, name, None)
            if auto_class is not None:
                return auto_class
        raise CollaboratorLoadError(
            f"transformers {transformers.__version__} provides none of {list(self.auto_classes)}"
        )

    async def from_pretrained(self, model_id: str, options: PretrainedOptions) -> Any:
        auto_class = self.resolve()
        kwargs = pretrained_kwargs(options)
        if self.kind is CollaboratorKind.MODEL and options.config is not None:
            kwargs["config"] = options.config
        if options.quantized:
            logger.debug(f"[Loader] quantized weights are not used by the torch backend ({model_id})")

        logger.info(f"[Loader] Loading {self.kind.value}: {model_id}")
        loaded = await asyncio.to_thread(auto_class.from_pretrained, model_id, **kwargs)

        if self.kind is CollaboratorKind.TOKENIZER:
            return TransformersTokenizer(loaded)
        if self.kind is CollaboratorKind.PROCESSOR:
            return TransformersProcessor(loaded)

        device = "cuda" if torch.cuda.is_available() else "cpu"
        loaded = loaded.to(device)
        loaded.eval()
        return TransformersModel(loaded, device=device)


def tokenizer_loader() -> AutoLoader:
    return AutoLoader(CollaboratorKind.TOKENIZER, ("AutoTokenizer",))


def model_loader(*auto_classes: str) -> AutoLoader:
    return AutoLoader(CollaboratorKind.MODEL, tuple(auto_classes))


def processor_loader() -> AutoLoader:
    return AutoLoader(CollaboratorKind.PROCESSOR, ("AutoProcessor",))
