"""提取模块 - 分阶段地点提取、去重和流水线"""

from .document_processor import DocumentProcessor
from .response_parser import parse_extraction_response
from .location_extractor import LocationExtractor
from .staged_extractor import StagedExtractor
from .deduplicator import LocationDeduplicator
from .pipeline import ExtractionPipeline

__all__ = [
    'DocumentProcessor',
    'parse_extraction_response',
    'LocationExtractor',
    'StagedExtractor',
    'LocationDeduplicator',
    'ExtractionPipeline'
]
