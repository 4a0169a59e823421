"""
地理编码提供方工厂
"""

import logging
from typing import Any, List, Optional

import httpx

from .base import BaseGeocodeProvider
from .google_maps import GoogleMapsProvider
from .nominatim import NominatimProvider
from ..core import get_config_loader
from ..core.exceptions import ConfigException, InvalidConfigException

logger = logging.getLogger(__name__)

MAX_PROVIDERS = 2


class GeocodeProviderFactory:
    """根据配置按优先级创建地理编码提供方"""

    PROVIDER_CLASS_MAP = {
        'google': GoogleMapsProvider,
        'nominatim': NominatimProvider,
    }

    @classmethod
    def create(
        cls,
        provider_id: str,
        config_loader: Optional[Any] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> BaseGeocodeProvider:
        """
        创建单个提供方

        Args:
            provider_id: 提供方标识（google / nominatim）
            config_loader: 配置加载器实例
            transport: 自定义HTTP传输层

        Returns:
            提供方实例

        Raises:
            InvalidConfigException: 未知的提供方
        """
        if provider_id not in cls.PROVIDER_CLASS_MAP:
            raise InvalidConfigException(
                f"Unknown geocoding provider: {provider_id}",
                details={'available_providers': list(cls.PROVIDER_CLASS_MAP.keys())}
            )

        if config_loader is None:
            config_loader = get_config_loader()

        timeout = config_loader.get('geocoding.timeout', 10)
        user_agent = config_loader.get('geocoding.user_agent')

        if provider_id == 'google':
            return GoogleMapsProvider(
                api_key=config_loader.get_api_key('google-maps'),
                timeout=timeout,
                user_agent=user_agent,
                transport=transport
            )
        return NominatimProvider(timeout=timeout, user_agent=user_agent, transport=transport)

    @classmethod
    def create_all(
        cls,
        config_loader: Optional[Any] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> List[BaseGeocodeProvider]:
        """
        创建配置中的全部提供方，顺序即优先级

        Raises:
            ConfigException: 未配置提供方或超过两个
        """
        if config_loader is None:
            config_loader = get_config_loader()

        provider_ids = config_loader.get_geocoding_providers()
        if not provider_ids:
            raise ConfigException("No geocoding providers configured")
        if len(provider_ids) > MAX_PROVIDERS:
            raise ConfigException(
                f"At most {MAX_PROVIDERS} geocoding providers are supported",
                details={'providers': provider_ids}
            )

        providers = [cls.create(pid, config_loader, transport) for pid in provider_ids]
        logger.info(f"地理编码提供方: {[p.provider_id for p in providers]}")
        return providers
