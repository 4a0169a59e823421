"""核心模块 - 数据模型、配置、验证和异常"""

from .models import (
    LLMModel,
    Confidence,
    Coordinate,
    RawCandidate,
    GeoResolution,
    ResolvedLocation,
    ExtractionAttempt,
    ExtractionResult,
    ComparisonRecord,
    haversine_distance_km,
    EARTH_RADIUS_KM,
    LLM_SOURCE,
    NO_MODEL
)

from .config import (
    ConfigLoader,
    get_config_loader,
    reset_config_loader,
    load_config_file,
    get_config,
    setup_logging
)

from .validation import validate_text, DEFAULT_MAX_TEXT_LENGTH

from .exceptions import (
    GeoTextException,
    ConfigException,
    LLMException,
    GeocodingException,
    DocumentException,
    ExtractionException,
    ValidationException,
    ExportException,
    ExperimentException
)

__all__ = [
    # Models
    'LLMModel',
    'Confidence',
    'Coordinate',
    'RawCandidate',
    'GeoResolution',
    'ResolvedLocation',
    'ExtractionAttempt',
    'ExtractionResult',
    'ComparisonRecord',
    'haversine_distance_km',
    'EARTH_RADIUS_KM',
    'LLM_SOURCE',
    'NO_MODEL',

    # Config
    'ConfigLoader',
    'get_config_loader',
    'reset_config_loader',
    'load_config_file',
    'get_config',
    'setup_logging',

    # Validation
    'validate_text',
    'DEFAULT_MAX_TEXT_LENGTH',

    # Exceptions
    'GeoTextException',
    'ConfigException',
    'LLMException',
    'GeocodingException',
    'DocumentException',
    'ExtractionException',
    'ValidationException',
    'ExportException',
    'ExperimentException'
]
