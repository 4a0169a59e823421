"""
GeoText Extraction - 主包初始化

从自由文本中提取地点，并通过多个地理编码来源交叉验证给出坐标和置信度。

主要功能：
- 分阶段LLM提取 (Gemini Flash 为主，Claude Haiku 回退)
- Google Maps + Nominatim 并发地理编码与一致性打分
- 按名称去重并合并原文提及
- 多模型对比实验与多格式结果导出

使用示例：
    from geotext_extraction import ExtractionPipeline

    pipeline = ExtractionPipeline.from_config()
    result = pipeline.run_sync("Visit the Eiffel Tower in Paris and Big Ben in London")

    for location in result.locations:
        print(location.name, location.latitude, location.longitude, location.confidence.value)
"""

__version__ = "1.0.0"
__author__ = "GeoText Team"

# 核心模型和配置
from .core import (
    # 数据模型
    LLMModel,
    Confidence,
    Coordinate,
    RawCandidate,
    GeoResolution,
    ResolvedLocation,
    ExtractionAttempt,
    ExtractionResult,
    ComparisonRecord,

    # 配置管理
    ConfigLoader,
    get_config_loader,
    get_config,
    setup_logging,

    # 输入校验
    validate_text,

    # 异常类
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

# 提取流水线
from .extraction import ExtractionPipeline, StagedExtractor, LocationExtractor, LocationDeduplicator

# 地理编码
from .geocoding import GeoConfidenceEngine, GeocodeProviderFactory

# 实验系统
from .experiment import ModelComparisonRunner, ResultExporter

__all__ = [
    # 核心数据模型
    'LLMModel',
    'Confidence',
    'Coordinate',
    'RawCandidate',
    'GeoResolution',
    'ResolvedLocation',
    'ExtractionAttempt',
    'ExtractionResult',
    'ComparisonRecord',

    # 主要功能
    'ExtractionPipeline',
    'StagedExtractor',
    'LocationExtractor',
    'LocationDeduplicator',
    'GeoConfidenceEngine',
    'GeocodeProviderFactory',

    # 实验系统
    'ModelComparisonRunner',
    'ResultExporter',

    # 配置管理
    'ConfigLoader',
    'get_config_loader',
    'get_config',
    'setup_logging',
    'validate_text',

    # 异常处理
    'GeoTextException',
    'ConfigException',
    'LLMException',
    'GeocodingException',
    'DocumentException',
    'ExtractionException',
    'ValidationException',
    'ExportException',
    'ExperimentException',
]
