"""地理编码模块 - 提供方与置信度引擎"""

from .base import BaseGeocodeProvider
from .google_maps import GoogleMapsProvider
from .nominatim import NominatimProvider
from .factory import GeocodeProviderFactory
from .confidence import GeoConfidenceEngine

__all__ = [
    'BaseGeocodeProvider',
    'GoogleMapsProvider',
    'NominatimProvider',
    'GeocodeProviderFactory',
    'GeoConfidenceEngine'
]
