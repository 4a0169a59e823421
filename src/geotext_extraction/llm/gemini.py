"""
Google Gemini LLM客户端实现
"""

import logging

from .base import BaseLLMClient, LLMResponse
from ..core import LLMModel
from ..core.exceptions import LLMException

logger = logging.getLogger(__name__)


class GeminiClient(BaseLLMClient):
    """
    Google Gemini API客户端

    通过 Gemini 的 OpenAI 兼容接口调用 Flash 系列模型
    """

    MODEL_NAME_MAP = {
        LLMModel.GEMINI_2_0_FLASH: "gemini-2.0-flash",
        LLMModel.GEMINI_2_5_FLASH: "gemini-2.5-flash",
    }

    def _initialize(self):
        """初始化Gemini客户端"""
        if not self.validate_config():
            raise LLMException(f"Invalid configuration for {self.model.value}")

        self._client = self._create_async_client()
        logger.info(f"Gemini客户端初始化成功: {self.model.value}")

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
            response.metadata['provider'] = 'google'
            return response
        except Exception as e:
            self.handle_error(e, "generate")
