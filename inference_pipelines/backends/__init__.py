"""
Backends Module - Collaborator loaders

Each backend adapts one inference library to the tokenizer/model/processor
contracts the pipelines rely on.
"""

from .transformers_backend import (
    AutoLoader,
    TransformersModel,
    TransformersProcessor,
    TransformersTokenizer,
    model_loader,
    processor_loader,
    tokenizer_loader,
)

__all__ = [
    "AutoLoader",
    "TransformersModel",
    "TransformersProcessor",
    "TransformersTokenizer",
    "model_loader",
    "processor_loader",
    "tokenizer_loader",
]
