"""
提取流水线模块 - 协调地点提取、地理编码和去重
"""

import asyncio
import time
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple, Union

import httpx

from .deduplicator import LocationDeduplicator
from .document_processor import DocumentProcessor
from .staged_extractor import StagedExtractor
from .. import __version__
from ..core import (
    Confidence,
    ExtractionResult,
    GeoResolution,
    LLM_SOURCE,
    NO_MODEL,
    RawCandidate,
    ResolvedLocation,
    get_config_loader,
    validate_text
)
from ..core.exceptions import DocumentException, ValidationException, handle_exception
from ..geocoding import GeoConfidenceEngine, GeocodeProviderFactory

logger = logging.getLogger(__name__)

SERVICE_NAME = 'GeoText API'
SERVICE_DESCRIPTION = 'Extract and geocode locations from text using AI + multi-source verification'

CONFIDENCE_DESCRIPTIONS = {
    Confidence.HIGH.value: 'Multiple sources agree (within ~{threshold:g}km)',
    Confidence.MEDIUM.value: 'Single authoritative source or moderate agreement',
    Confidence.LOW.value: 'Only LLM estimate or no verification possible',
}

SOURCE_DESCRIPTIONS = {
    LLM_SOURCE: 'llm (model estimate)',
    'google': 'google (Google Maps)',
    'nominatim': 'nominatim (OpenStreetMap)',
}


class ExtractionPipeline:
    """
    提取流水线

    一次调用: 分阶段提取候选地点 -> 每个候选并发地理编码 -> 按候选顺序组装 -> 去重
    """

    def __init__(
        self,
        staged_extractor: StagedExtractor,
        confidence_engine: GeoConfidenceEngine,
        deduplicator: Optional[LocationDeduplicator] = None,
        config_loader: Optional[Any] = None,
        document_processor: Optional[DocumentProcessor] = None
    ):
        """
        初始化提取流水线

        Args:
            staged_extractor: 分阶段提取器
            confidence_engine: 地理置信度引擎
            deduplicator: 去重器
            config_loader: 配置加载器
            document_processor: 文档处理器
        """
        self.config_loader = config_loader or get_config_loader()
        self.staged_extractor = staged_extractor
        self.confidence_engine = confidence_engine
        self.deduplicator = deduplicator or LocationDeduplicator()
        self.document_processor = document_processor or DocumentProcessor()

    @classmethod
    def from_config(
        cls,
        config_loader: Optional[Any] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> 'ExtractionPipeline':
        """
        根据配置创建完整的流水线

        Args:
            config_loader: 配置加载器
            transport: 地理编码HTTP传输层（测试用）

        Raises:
            ConfigException: 地理编码配置错误
        """
        config_loader = config_loader or get_config_loader()
        providers = GeocodeProviderFactory.create_all(config_loader, transport=transport)
        return cls(
            staged_extractor=StagedExtractor.from_config(config_loader),
            confidence_engine=GeoConfidenceEngine.from_config(providers, config_loader),
            config_loader=config_loader
        )

    async def _resolve_candidate(
        self, candidate: RawCandidate
    ) -> Tuple[ResolvedLocation, Optional[Dict[str, Any]]]:
        try:
            resolution = await self.confidence_engine.resolve(
                candidate.name, candidate.estimated_coordinate
            )
            return ResolvedLocation.from_candidate(candidate, resolution), None
        except Exception as e:
            error = handle_exception(e, context=f"resolve {candidate.name}", reraise=False)
            return ResolvedLocation.from_candidate(candidate, GeoResolution.unresolved()), error

    async def run(self, text: str) -> ExtractionResult:
        """
        对一段文本执行完整流程

        调用方负责输入校验（见 process_text）。

        Args:
            text: 输入文本

        Returns:
            提取结果
        """
        start_time = time.perf_counter()

        candidates, model_used, attempts = await self.staged_extractor.extract_with_attempts(text)

        # gather 保持候选顺序，与完成先后无关
        resolved = await asyncio.gather(
            *(self._resolve_candidate(candidate) for candidate in candidates)
        )

        errors = [error for _, error in resolved if error]
        locations = self.deduplicator.merge(location for location, _ in resolved)

        processing_time_ms = int(round((time.perf_counter() - start_time) * 1000))

        result = ExtractionResult(
            locations=locations,
            model_used=model_used,
            input_length=len(text),
            processing_time_ms=processing_time_ms,
            errors=errors,
            metadata={
                'candidate_count': len(candidates),
                'attempts': [
                    {
                        'model': a.model_id,
                        'succeeded': a.succeeded,
                        'error': a.error,
                        'duration_ms': round(a.duration_ms, 1)
                    }
                    for a in attempts
                ],
                'geocoding_providers': self.confidence_engine.provider_ids
            }
        )

        logger.info(
            f"提取完成: model={model_used}, 候选 {len(candidates)} 个, 地点 {len(locations)} 个, "
            f"已定位 {result.resolved_count} 个, 耗时 {processing_time_ms} ms"
        )
        if errors:
            logger.warning(f"  - 错误数量: {len(errors)} 个")

        return result

    async def process_text(self, text: Any) -> ExtractionResult:
        """
        校验输入后执行流程

        Raises:
            ValidationException: 输入缺失、类型错误或超长
        """
        text = validate_text(text, self.config_loader.get_max_input_length())
        return await self.run(text)

    async def process_document(self, file_path: Union[str, Path]) -> ExtractionResult:
        """
        读取文档并执行流程

        Raises:
            DocumentException: 文档读取失败
            ValidationException: 文档内容为空或超长
        """
        file_path = Path(file_path)
        logger.info(f"开始处理文档: {file_path.name}")

        text = self.document_processor.process_document(str(file_path))
        result = await self.process_text(text)
        result.metadata['document_name'] = file_path.name
        result.metadata['file_path'] = str(file_path.absolute())
        return result

    async def process_documents_batch(self, file_paths: List[Union[str, Path]]) -> List[ExtractionResult]:
        """
        依次处理多个文档，单个文档失败不影响其他文档

        Returns:
            处理结果列表，失败的文档以空结果加错误信息表示
        """
        results = []
        for path in file_paths:
            try:
                results.append(await self.process_document(path))
            except (DocumentException, ValidationException) as e:
                logger.error(f"处理文档失败 {path}: {str(e)}")
                results.append(ExtractionResult(
                    locations=[],
                    model_used=NO_MODEL,
                    errors=[{
                        'type': type(e).__name__,
                        'message': str(e),
                        'details': e.details
                    }],
                    metadata={'document_name': Path(path).name}
                ))
        return results

    def run_sync(self, text: Any) -> ExtractionResult:
        """同步入口，供命令行和脚本使用"""
        return asyncio.run(self.process_text(text))

    def service_info(self) -> Dict[str, Any]:
        """服务说明：名称、版本、置信度含义和当前配置的来源"""
        threshold = self.confidence_engine.threshold_km
        sources = [LLM_SOURCE] + self.confidence_engine.provider_ids
        return {
            'name': SERVICE_NAME,
            'version': __version__,
            'description': SERVICE_DESCRIPTION,
            'input': {'text': f'string (required, max {self.config_loader.get_max_input_length():,} chars)'},
            'response': {
                'success': 'boolean',
                'locations': 'ExtractedLocation[]',
                'model_used': 'string',
                'input_length': 'number',
                'processing_time_ms': 'number',
            },
            'extraction_chain': self.staged_extractor.model_ids,
            'confidence_levels': {
                level: description.format(threshold=threshold)
                for level, description in CONFIDENCE_DESCRIPTIONS.items()
            },
            'sources': [SOURCE_DESCRIPTIONS.get(s, s) for s in sources],
        }

    @staticmethod
    def get_statistics(results: List[ExtractionResult]) -> Dict[str, Any]:
        """
        汇总多次处理结果

        Args:
            results: 处理结果列表

        Returns:
            统计信息字典
        """
        total_locations = sum(len(r.locations) for r in results)
        total_resolved = sum(r.resolved_count for r in results)
        total_time = sum(r.processing_time_ms for r in results)

        breakdown = {level.value: 0 for level in Confidence}
        for r in results:
            for level, count in r.confidence_breakdown().items():
                breakdown[level] += count

        return {
            'total_documents': len(results),
            'failed_documents': sum(1 for r in results if r.errors and not r.locations),
            'total_locations': total_locations,
            'resolved_locations': total_resolved,
            'confidence_breakdown': breakdown,
            'total_processing_time_ms': total_time,
            'avg_processing_time_ms': total_time / len(results) if results else 0,
            'resolution_rate': total_resolved / total_locations if total_locations else 0
        }

    async def close(self) -> None:
        await self.staged_extractor.close()
