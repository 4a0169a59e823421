"""
Nominatim (OpenStreetMap) 地理编码提供方
"""

import logging
from typing import Optional

import httpx

from .base import BaseGeocodeProvider
from ..core import Coordinate
from ..core.exceptions import InvalidGeocodeResponseException

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = 'https://nominatim.openstreetmap.org/search'
DEFAULT_USER_AGENT = 'GeoText-API/1.0 (https://github.com/geotext-api)'


class NominatimProvider(BaseGeocodeProvider):
    """
    Nominatim 地理编码，免费，无需 API Key

    使用政策要求每个请求都带有可识别的 User-Agent。
    """

    provider_id = 'nominatim'

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            timeout=timeout,
            user_agent=user_agent or DEFAULT_USER_AGENT,
            transport=transport
        )

    async def geocode(self, query: str) -> Optional[Coordinate]:
        data = await self._get_json(
            NOMINATIM_SEARCH_URL,
            {'q': query, 'format': 'json', 'limit': 1}
        )
        if not isinstance(data, list):
            raise InvalidGeocodeResponseException("nominatim returned an unexpected body")
        if not data:
            return None

        first = data[0]
        if not isinstance(first, dict):
            raise InvalidGeocodeResponseException("nominatim result is not an object")

        # 经纬度以字符串形式返回
        return self._to_coordinate(first.get('lat'), first.get('lon'), self.provider_id)
