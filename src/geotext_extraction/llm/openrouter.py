"""
OpenRouter LLM客户端实现
"""

import logging

from .base import BaseLLMClient, LLMResponse
from ..core import LLMModel
from ..core.exceptions import LLMException

logger = logging.getLogger(__name__)


class OpenRouterClient(BaseLLMClient):
    """
    OpenRouter API客户端

    支持通过OpenRouter访问多种模型，主要用于模型对比实验
    """

    MODEL_NAME_MAP = {
        LLMModel.GPT_4O_MINI_OPENROUTER: "openai/gpt-4o-mini",
    }

    APP_HEADERS = {
        'HTTP-Referer': 'https://github.com/geotext-api',
        'X-Title': 'GeoText API',
    }

    def _initialize(self):
        """初始化OpenRouter客户端"""
        if not self.validate_config():
            raise LLMException(f"Invalid configuration for {self.model.value}")

        self._client = self._create_async_client(default_headers=self.APP_HEADERS)
        logger.info(f"OpenRouter客户端初始化成功: {self.model.value}")

    def _get_model_name(self) -> str:
        return self.MODEL_NAME_MAP.get(self.model, self.model.value)

    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        """
        生成文本响应

        Args:
            prompt: 输入提示词
            **kwargs: 额外参数（temperature、max_tokens等）

        Returns:
            LLM响应对象
        """
        try:
            response = await self._complete([{"role": "user", "content": prompt}], **kwargs)
            response.metadata['provider'] = 'openrouter'
            return response
        except Exception as e:
            self.handle_error(e, "generate")
