"""Generative media providers."""

from studio.ai.providers.base import GenerationConfig, GenerationMode, GenerationRequest, GenerationResponse, MediaClient, ReferenceImage, SpeakerVoice
from studio.ai.providers.gemini import GeminiMediaClient

__all__ = ["GenerationConfig", "GenerationMode", "GenerationRequest", "GenerationResponse", "MediaClient", "ReferenceImage", "SpeakerVoice", "GeminiMediaClient"]
