"""
Anthropic Claude LLM客户端实现
"""

import logging

from .base import BaseLLMClient, LLMResponse
from ..core import LLMModel
from ..core.exceptions import LLMException

logger = logging.getLogger(__name__)


class ClaudeClient(BaseLLMClient):
    """
    Anthropic API客户端

    通过 Anthropic 的 OpenAI SDK 兼容接口调用 Claude 模型
    """

    MODEL_NAME_MAP = {
        LLMModel.CLAUDE_HAIKU_4_5: "claude-haiku-4-5-20251001",
        LLMModel.CLAUDE_SONNET_4: "claude-sonnet-4-20250514",
    }

    def _initialize(self):
        """初始化Claude客户端"""
        if not self.validate_config():
            raise LLMException(f"Invalid configuration for {self.model.value}")

        self._client = self._create_async_client()
        logger.info(f"Claude客户端初始化成功: {self.model.value}")

    def _get_model_name(self) -> str:
        return self.MODEL_NAME_MAP.get(self.model, self.model.value)

    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        """
        生成文本响应

        Args:
            prompt: 输入提示词
            **kwargs: 额外参数

        Returns:
            LLM响应对象
        """
        try:
            response = await self._complete([{"role": "user", "content": prompt}], **kwargs)
            response.metadata['provider'] = 'anthropic'
            return response
        except Exception as e:
            self.handle_error(e, "generate")
