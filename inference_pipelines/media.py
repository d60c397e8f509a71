"""
Image and audio input normalisation.

Decoding compressed audio is out of scope: audio must already be a float
sample array at the processor's sampling rate.
"""

from pathlib import Path
from typing import Any, List, Union

import numpy as np
from PIL import Image

from .errors import ValidationError

ImageInput = Union[str, Path, np.ndarray, Image.Image]


def read_image(image: ImageInput) -> Image.Image:
    """Convert a path, array or PIL image to an RGB PIL image."""
    if isinstance(image, (str, Path)):
        image = Image.open(image)
    elif isinstance(image, np.ndarray):
        image = Image.fromarray(image)
    elif not isinstance(image, Image.Image):
        raise ValidationError(f"Invalid image format: {type(image).__name__}")

    if image.mode != "RGB":
        image = image.convert("RGB")
    return image


def prepare_images(images: Any) -> List[Image.Image]:
    """Wrap a single image in a list and convert every item to RGB."""
    if not isinstance(images, (list, tuple)):
        images = [images]
    return [read_image(image) for image in images]


def image_sizes(images: List[Image.Image]) -> List[tuple]:
    """(height, width) per image, as post-processors expect target sizes."""
    return [(image.height, image.width) for image in images]


def is_audio_batch(audio: Any) -> bool:
    if isinstance(audio, (list, tuple)):
        return True
    return isinstance(audio, np.ndarray) and audio.ndim == 2


def prepare_audio(audio: Any) -> np.ndarray:
    """Validate one clip as a 1-D float32 sample array."""
    if isinstance(audio, (str, Path)):
        raise ValidationError("Audio must be given as a sample array, not a path.")
    samples = np.asarray(audio, dtype=np.float32)
    if samples.ndim != 1:
        raise ValidationError(f"Audio must be 1-D, got shape {samples.shape}")
    return samples
