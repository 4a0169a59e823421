"""
LLM客户端工厂
"""

from typing import Optional, Dict, Any, Union
import logging

from .base import BaseLLMClient, LLMConfig
from .gemini import GeminiClient
from .claude import ClaudeClient
from .openrouter import OpenRouterClient
from ..core import LLMModel, get_config_loader
from ..core.exceptions import InvalidModelException, ConfigException, LLMException

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta/openai/'
ANTHROPIC_BASE_URL = 'https://api.anthropic.com/v1/'
OPENROUTER_BASE_URL = 'https://openrouter.ai/api/v1'


class LLMClientFactory:
    """
    LLM客户端工厂类

    负责根据模型类型创建相应的LLM客户端实例
    """

    MODEL_CLIENT_MAP = {
        LLMModel.GEMINI_2_0_FLASH: GeminiClient,
        LLMModel.GEMINI_2_5_FLASH: GeminiClient,
        LLMModel.CLAUDE_HAIKU_4_5: ClaudeClient,
        LLMModel.CLAUDE_SONNET_4: ClaudeClient,
        LLMModel.GPT_4O_MINI_OPENROUTER: OpenRouterClient,
    }

    MODEL_API_CONFIG = {
        LLMModel.GEMINI_2_0_FLASH: {
            'api_key_name': 'google-gemini',
            'base_url': GEMINI_BASE_URL
        },
        LLMModel.GEMINI_2_5_FLASH: {
            'api_key_name': 'google-gemini',
            'base_url': GEMINI_BASE_URL
        },
        LLMModel.CLAUDE_HAIKU_4_5: {
            'api_key_name': 'anthropic',
            'base_url': ANTHROPIC_BASE_URL
        },
        LLMModel.CLAUDE_SONNET_4: {
            'api_key_name': 'anthropic',
            'base_url': ANTHROPIC_BASE_URL
        },
        LLMModel.GPT_4O_MINI_OPENROUTER: {
            'api_key_name': 'openrouter',
            'base_url': OPENROUTER_BASE_URL
        },
    }

    @staticmethod
    def resolve_model(model: Union[LLMModel, str]) -> LLMModel:
        """
        将模型名称转换为枚举

        Args:
            model: 模型枚举或名称（值或枚举名均可）

        Returns:
            LLM模型枚举

        Raises:
            InvalidModelException: 未知的模型名称
        """
        if isinstance(model, LLMModel):
            return model

        for candidate in LLMModel:
            if candidate.value == model:
                return candidate

        for candidate in LLMModel:
            if candidate.name == str(model).upper().replace('-', '_').replace('.', '_'):
                return candidate

        raise InvalidModelException(
            f"Unknown model: {model}",
            details={'available_models': [m.value for m in LLMModel]}
        )

    @classmethod
    def create(
        cls,
        model: Union[LLMModel, str],
        config_loader: Optional[Any] = None,
        config_override: Optional[Dict[str, Any]] = None
    ) -> BaseLLMClient:
        """
        创建LLM客户端实例

        Args:
            model: LLM模型枚举或名称
            config_loader: 配置加载器实例（可选）
            config_override: 配置覆盖参数（可选）

        Returns:
            LLM客户端实例

        Raises:
            InvalidModelException: 不支持的模型
            ConfigException: 配置错误
        """
        model = cls.resolve_model(model)

        if model not in cls.MODEL_CLIENT_MAP:
            raise InvalidModelException(
                f"Unsupported model: {model.value}",
                details={'available_models': [m.value for m in cls.MODEL_CLIENT_MAP.keys()]}
            )

        if config_loader is None:
            config_loader = get_config_loader()

        api_config = cls.MODEL_API_CONFIG.get(model, {})
        api_key_name = api_config.get('api_key_name')
        base_url = api_config.get('base_url')

        api_key = config_loader.get_api_key(api_key_name)
        if not api_key:
            raise ConfigException(
                f"API key not found for {api_key_name}",
                details={'model': model.value, 'api_key_name': api_key_name}
            )

        llm_config = LLMConfig(
            model=model,
            api_key=api_key,
            base_url=base_url,
            temperature=config_loader.get('llm.temperature', 0.1),
            max_tokens=config_loader.get('llm.max_tokens', 4096),
            timeout=config_loader.get('llm.timeout', 30),
            retry_times=config_loader.get('llm.retry_times', 1)
        )

        if config_override:
            for key, value in config_override.items():
                if hasattr(llm_config, key):
                    setattr(llm_config, key, value)

        client_class = cls.MODEL_CLIENT_MAP[model]

        try:
            client = client_class(llm_config)
            logger.info(f"Created LLM client for {model.value}")
            return client
        except LLMException as e:
            raise ConfigException(
                f"Failed to create LLM client for {model.value}",
                details={'error': str(e)}
            ) from e

    @classmethod
    def get_supported_models(cls) -> Dict[str, str]:
        """
        获取支持的模型列表

        Returns:
            模型名称到提供商的映射
        """
        result = {}
        for model in cls.MODEL_CLIENT_MAP.keys():
            api_config = cls.MODEL_API_CONFIG.get(model, {})
            result[model.value] = api_config.get('api_key_name', 'unknown')
        return result

    @classmethod
    def validate_model_config(cls, model: LLMModel, config_loader: Optional[Any] = None) -> bool:
        """
        验证模型配置是否完整

        Args:
            model: LLM模型枚举
            config_loader: 配置加载器实例

        Returns:
            配置是否有效
        """
        if model not in cls.MODEL_CLIENT_MAP:
            return False

        if config_loader is None:
            config_loader = get_config_loader()

        api_key_name = cls.MODEL_API_CONFIG.get(model, {}).get('api_key_name')
        if not api_key_name:
            return False

        return bool(config_loader.get_api_key(api_key_name))
