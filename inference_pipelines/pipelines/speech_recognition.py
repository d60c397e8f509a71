"""
AutomaticSpeechRecognitionPipeline - Speech-to-text

For: Whisper-style encoder-decoder models
Long clips are split into overlapping windows, generated one after another,
and merged by the tokenizer's chunk-aware decoding.
"""

import logging
from typing import Any, Callable, List, Optional

from ..config import PIPELINE_DEFAULTS
from ..decoders.audio_chunking import AudioChunk, plan_windows, stride_to_seconds, time_precision
from ..decoders.unwrap import unwrap
from ..media import is_audio_batch, prepare_audio
from ..types import PipelineTask, Transcription
from .base import BasePipeline

logger = logging.getLogger(__name__)


class AutomaticSpeechRecognitionPipeline(BasePipeline):
    """
    Automatic speech recognition pipeline.

    Generation runs strictly sequentially over chunks: the model is never
    asked to generate twice at once.
    """

    def pipeline_type(self) -> str:
        return PipelineTask.AUTOMATIC_SPEECH_RECOGNITION.value

    async def invoke(self, audio: Any,
                     return_timestamps: bool = False,
                     chunk_length_s: float = PIPELINE_DEFAULTS.chunk_length_s,
                     stride_length_s: Optional[float] = None,
                     chunk_callback: Optional[Callable[[AudioChunk], Any]] = None,
                     force_full_sequences: bool = False,
                     **generate_kwargs: Any) -> Any:
        """
        Transcribe audio clip(s).

        Args:
            audio: A 1-D sample array or a list of them, at the processor's sampling rate
            return_timestamps: Whether to return timestamped chunks
            chunk_length_s: Window length in seconds; 0 disables chunking
            stride_length_s: Overlap on each side in seconds (default chunk_length_s / 6)
            chunk_callback: Called with each chunk right after its generation
            force_full_sequences: Forwarded to the tokenizer's merge step
            **generate_kwargs: Generation options forwarded to the model

        Returns:
            {'text', ...} (or a list of them)
        """
        batched = is_audio_batch(audio)
        clips = list(audio) if batched else [audio]

        fe_config = self.processor.feature_extractor.config
        sampling_rate = fe_config.sampling_rate
        precision = time_precision(fe_config.chunk_length, self.model.config.max_source_positions)

        generate_kwargs = dict(generate_kwargs, return_timestamps=return_timestamps)

        results: List[Transcription] = []
        for clip in clips:
            samples = prepare_audio(clip)
            windows = plan_windows(len(samples), sampling_rate, chunk_length_s,
                                   stride_length_s, PIPELINE_DEFAULTS.stride_divisor)

            chunks: List[AudioChunk] = []
            for window in windows:
                features = await self.processor(samples[window.start:window.end])
                chunks.append(AudioChunk(
                    stride=window.stride,
                    input_features=features["input_features"],
                    is_last=window.is_last,
                ))

            logger.debug(f"[ASR] Generating {len(chunks)} chunk(s) for {len(samples)} samples")
            for chunk in chunks:
                generated = await self.model.generate(chunk.input_features, generate_kwargs)

                # Top beam of the only batch item
                chunk.tokens = [int(t) for t in generated[0][0]]
                chunk.stride = stride_to_seconds(chunk.stride, sampling_rate)

                if chunk_callback is not None:
                    chunk_callback(chunk)

            text, optional = self.tokenizer.decode_asr(
                chunks,
                time_precision=precision,
                return_timestamps=return_timestamps,
                force_full_sequences=force_full_sequences,
            )
            results.append({"text": text, **(optional or {})})

        return unwrap(results, self.unwrap_policy, batched=batched)
