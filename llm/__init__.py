"""LLM integration modules for listing classification."""

from .classifier import (
    ClassificationResult,
    ClassifierError,
    ClassifierSchemaError,
    ClassifierUnavailableError,
    OpenAIClassifier,
)
from .hybrid import HybridClassifier

__all__ = [
    "OpenAIClassifier",
    "HybridClassifier",
    "ClassificationResult",
    "ClassifierError",
    "ClassifierSchemaError",
    "ClassifierUnavailableError",
]
