"""
Google Maps Geocoding API 提供方
"""

import logging
from typing import Optional

import httpx

from .base import BaseGeocodeProvider
from ..core import Coordinate
from ..core.exceptions import (
    GeocodingAPIException,
    GeocodingRateLimitException,
    InvalidGeocodeResponseException
)

logger = logging.getLogger(__name__)

GOOGLE_GEOCODE_URL = 'https://maps.googleapis.com/maps/api/geocode/json'


class GoogleMapsProvider(BaseGeocodeProvider):
    """
    Google Maps 地理编码

    没有 API Key 时不发送请求，直接视为查询不到。
    """

    provider_id = 'google'

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(timeout=timeout, user_agent=user_agent, transport=transport)
        self.api_key = api_key
        if not api_key:
            logger.warning("未配置 Google Maps API Key，Google 地理编码将始终返回空结果")

    async def geocode(self, query: str) -> Optional[Coordinate]:
        if not self.api_key:
            return None

        data = await self._get_json(GOOGLE_GEOCODE_URL, {'address': query, 'key': self.api_key})
        if not isinstance(data, dict):
            raise InvalidGeocodeResponseException("google returned an unexpected body")

        status = data.get('status')
        if status == 'ZERO_RESULTS':
            return None
        if status == 'OVER_QUERY_LIMIT':
            raise GeocodingRateLimitException("google rate limit exceeded")
        if status != 'OK':
            raise GeocodingAPIException(
                f"google returned status {status}",
                details={'error_message': data.get('error_message')}
            )

        results = data.get('results') or []
        if not results:
            return None

        try:
            location = results[0]['geometry']['location']
        except (KeyError, TypeError) as e:
            raise InvalidGeocodeResponseException("google result has no geometry") from e

        return self._to_coordinate(location.get('lat'), location.get('lng'), self.provider_id)
