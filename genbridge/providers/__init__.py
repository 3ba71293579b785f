from .base import BaseContentGenerator
from .openai import OpenAIContentGenerator
from .gemini import GeminiContentGenerator, VertexContentGenerator
from .code_assist import CodeAssistContentGenerator

__all__ = [
    "BaseContentGenerator",
    "OpenAIContentGenerator",
    "GeminiContentGenerator",
    "VertexContentGenerator",
    "CodeAssistContentGenerator",
]
