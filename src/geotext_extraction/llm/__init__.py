"""LLM客户端模块 - 多模型支持"""

from .base import BaseLLMClient, LLMConfig, LLMResponse
from .factory import LLMClientFactory
from .gemini import GeminiClient
from .claude import ClaudeClient
from .openrouter import OpenRouterClient

__all__ = [
    'BaseLLMClient',
    'LLMConfig',
    'LLMResponse',
    'LLMClientFactory',
    'GeminiClient',
    'ClaudeClient',
    'OpenRouterClient'
]
