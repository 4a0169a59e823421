"""
LLM基础客户端抽象类
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
import logging
from dataclasses import dataclass

import openai

from ..core import LLMModel
from ..core.exceptions import (
    LLMException,
    LLMTimeoutException,
    LLMAPIException,
    LLMConnectionException,
    LLMRateLimitException,
    LLMAuthenticationException
)

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """LLM配置"""
    model: LLMModel
    api_key: str
    base_url: str
    temperature: float = 0.1
    max_tokens: int = 4096
    timeout: int = 30
    retry_times: int = 1


@dataclass
class LLMResponse:
    """LLM响应"""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    metadata: Optional[Dict[str, Any]] = None


class BaseLLMClient(ABC):
    """
    LLM客户端基类

    提供统一的异步LLM调用接口，所有具体的LLM实现都应继承此类。
    各提供方都通过 OpenAI 兼容接口访问。
    """

    def __init__(self, config: LLMConfig):
        """
        初始化LLM客户端

        Args:
            config: LLM配置对象
        """
        self.config = config
        self.model = config.model
        self._client: Optional[openai.AsyncOpenAI] = None
        self._initialize()

    @abstractmethod
    def _initialize(self):
        """初始化具体的客户端实现"""
        pass

    @abstractmethod
    def _get_model_name(self) -> str:
        """
        获取提供方实际使用的模型名称

        Returns:
            模型名称字符串
        """
        pass

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        """
        生成文本响应

        Args:
            prompt: 输入提示词
            **kwargs: 额外参数

        Returns:
            LLM响应对象

        Raises:
            LLMException: LLM调用异常
        """
        pass

    @property
    def model_id(self) -> str:
        """对外报告的模型标识"""
        return self.model.value

    async def _complete(self, messages: List[Dict[str, str]], **kwargs) -> LLMResponse:
        """调用 chat.completions 并构建响应对象"""
        temperature = kwargs.pop('temperature', self.config.temperature)
        max_tokens = kwargs.pop('max_tokens', self.config.max_tokens)

        response = await self._client.chat.completions.create(
            model=self._get_model_name(),
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=False,
            **kwargs
        )

        if not response.choices:
            raise LLMAPIException(f"Empty response from {self.model_id}")

        content = response.choices[0].message.content or ""

        usage = None
        if getattr(response, 'usage', None):
            usage = {
                'prompt_tokens': response.usage.prompt_tokens,
                'completion_tokens': response.usage.completion_tokens,
                'total_tokens': response.usage.total_tokens
            }

        return LLMResponse(
            content=content,
            model=self._get_model_name(),
            usage=usage,
            metadata={'response_id': getattr(response, 'id', None)}
        )

    def _create_async_client(self, **kwargs) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=0,
            **kwargs
        )

    def validate_config(self) -> bool:
        """
        验证配置是否有效

        Returns:
            配置是否有效
        """
        if not self.config.api_key:
            logger.error(f"API key missing for {self.model.value}")
            return False

        if not self.config.base_url:
            logger.error(f"Base URL missing for {self.model.value}")
            return False

        return True

    def handle_error(self, error: Exception, context: str = "") -> None:
        """
        统一的错误处理

        Args:
            error: 异常对象
            context: 错误上下文

        Raises:
            LLMException: 转换后的LLM异常
        """
        if isinstance(error, LLMException):
            raise error

        error_msg = f"LLM错误 [{self.model.value}] {context}: {str(error)}"
        logger.error(error_msg)

        # 超时必须先于连接错误判断，APITimeoutError 是 APIConnectionError 的子类
        if isinstance(error, (openai.APITimeoutError, asyncio.TimeoutError)):
            raise LLMTimeoutException(error_msg) from error
        if isinstance(error, openai.APIConnectionError):
            raise LLMConnectionException(error_msg) from error
        if isinstance(error, openai.RateLimitError):
            raise LLMRateLimitException(error_msg) from error
        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            raise LLMAuthenticationException(error_msg) from error
        if isinstance(error, openai.APIStatusError):
            raise LLMAPIException(error_msg, status_code=error.status_code) from error
        raise LLMException(error_msg) from error

    async def close(self) -> None:
        """关闭底层HTTP连接"""
        if self._client is not None:
            await self._client.close()

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model.value})"

    def __repr__(self) -> str:
        return self.__str__()
