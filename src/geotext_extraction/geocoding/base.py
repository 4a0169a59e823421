"""
地理编码提供方基类
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..core import Coordinate
from ..core.exceptions import (
    GeocodingException,
    GeocodingTimeoutException,
    GeocodingAPIException,
    GeocodingRateLimitException,
    InvalidGeocodeResponseException
)

logger = logging.getLogger(__name__)


class BaseGeocodeProvider(ABC):
    """
    地理编码提供方基类

    每次查询都打开独立的 httpx.AsyncClient，一个提供方的连接问题不会影响其他提供方。
    查询不到结果返回 None；传输、HTTP 状态或响应体错误抛出 GeocodingException 子类。
    """

    provider_id: str = ""

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        初始化提供方

        Args:
            timeout: 单次HTTP请求超时（秒）
            user_agent: 请求头中的 User-Agent
            transport: 自定义传输层（测试时注入 httpx.MockTransport）
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    @abstractmethod
    async def geocode(self, query: str) -> Optional[Coordinate]:
        """
        查询地点坐标

        Args:
            query: 地点名称

        Returns:
            坐标，查询不到时返回 None

        Raises:
            GeocodingException: 查询失败
        """
        pass

    def _headers(self) -> Dict[str, str]:
        if self.user_agent:
            return {'User-Agent': self.user_agent}
        return {}

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """发送GET请求并解析JSON响应体"""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport
            ) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise GeocodingTimeoutException(
                f"{self.provider_id} request timed out",
                details={'url': url}
            ) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 429:
                raise GeocodingRateLimitException(
                    f"{self.provider_id} rate limit exceeded",
                    status_code=status_code
                ) from e
            raise GeocodingAPIException(
                f"{self.provider_id} returned HTTP {status_code}",
                status_code=status_code
            ) from e
        except httpx.RequestError as e:
            raise GeocodingException(
                f"Error connecting to {self.provider_id}: {e}"
            ) from e
        except ValueError as e:
            raise InvalidGeocodeResponseException(
                f"{self.provider_id} returned a non-JSON body"
            ) from e

    @staticmethod
    def _to_coordinate(lat: Any, lon: Any, provider_id: str) -> Coordinate:
        """把响应中的经纬度转换为坐标，数值非法时抛出异常"""
        try:
            return Coordinate(float(lat), float(lon))
        except (TypeError, ValueError) as e:
            raise InvalidGeocodeResponseException(
                f"{provider_id} returned invalid coordinates",
                details={'lat': lat, 'lon': lon}
            ) from e

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(provider_id={self.provider_id})"

    def __repr__(self) -> str:
        return self.__str__()
