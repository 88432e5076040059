"""NaturalPS - prompt-plus-images front end for Gemini image generation."""

__version__ = "0.1.0"

from naturalps.core.config import NaturalPSConfig, config
from naturalps.core.generation import GenerationClient, strategy_registry

__all__ = [
    "NaturalPSConfig",
    "config",
    "GenerationClient",
    "strategy_registry",
]
