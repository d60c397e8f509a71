"""
Long-audio windowing for speech recognition.

Strides are computed in samples and only converted to seconds once a chunk
has been generated, so overlaps stay sample-accurate.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..errors import ValidationError
from ..types import Stride


@dataclass
class AudioChunk:
    """One windowed slice of a clip and its generation result"""
    stride: Stride
    input_features: Any
    is_last: bool
    tokens: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class ChunkWindow:
    """Sample range of a chunk and its overlaps, all in samples"""
    start: int
    end: int
    stride_left: int
    stride_right: int
    is_last: bool

    @property
    def stride(self) -> Stride:
        return (self.end - self.start, self.stride_left, self.stride_right)


def resolve_stride_length(chunk_length_s: float, stride_length_s: Optional[float],
                          divisor: int = 6) -> float:
    """Default the stride to ``chunk_length_s / divisor`` and validate it."""
    if stride_length_s is None:
        return chunk_length_s / divisor
    if chunk_length_s <= stride_length_s:
        raise ValidationError("`chunk_length_s` must be larger than `stride_length_s`.")
    return stride_length_s


def plan_windows(num_samples: int, sampling_rate: int, chunk_length_s: float = 0,
                 stride_length_s: Optional[float] = None, divisor: int = 6) -> List[ChunkWindow]:
    """
    Split ``num_samples`` into overlapping windows.

    With ``chunk_length_s == 0`` a single window covers the whole clip with
    zero stride. Otherwise windows of ``sampling_rate * chunk_length_s``
    samples advance by ``window - 2 * stride``; the first window has no left
    overlap, the last no right overlap, and the last window is the one whose
    end reaches the end of the clip. Removing each window's overlaps leaves a
    contiguous cover of the clip.

    Raises:
        ValidationError: If the stride is not shorter than the chunk, or if
            two strides leave no room for the window to advance.
    """
    if chunk_length_s <= 0:
        return [ChunkWindow(0, num_samples, 0, 0, True)]

    stride_length_s = resolve_stride_length(chunk_length_s, stride_length_s, divisor)

    window = int(sampling_rate * chunk_length_s)
    stride = int(sampling_rate * stride_length_s)
    jump = window - 2 * stride
    if jump <= 0:
        raise ValidationError(
            f"`chunk_length_s` ({chunk_length_s}) must be larger than twice "
            f"`stride_length_s` ({stride_length_s})."
        )

    windows: List[ChunkWindow] = []
    for offset in range(0, max(num_samples, 1), jump):
        end = min(offset + window, num_samples)
        is_last = offset + window >= num_samples
        windows.append(ChunkWindow(
            start=offset,
            end=end,
            stride_left=0 if offset == 0 else stride,
            stride_right=0 if is_last else stride,
            is_last=is_last,
        ))
        if is_last:
            break
    return windows


def stride_to_seconds(stride: Sequence[float], sampling_rate: int) -> Stride:
    return tuple(value / sampling_rate for value in stride)


def time_precision(chunk_length: float, max_source_positions: int) -> float:
    """Seconds covered by one timestamp token."""
    return chunk_length / max_source_positions
