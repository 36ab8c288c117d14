from .base import BaseLLMProvider
from .lmstudio import LMStudioProvider
from .ollama import OllamaProvider

__all__ = ["BaseLLMProvider", "LMStudioProvider", "OllamaProvider"]
