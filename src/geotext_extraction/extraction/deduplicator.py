"""
地点去重 - 按名称（忽略大小写）合并重复出现的地点
"""

import logging
from typing import Dict, Iterable, List

from ..core import ResolvedLocation

logger = logging.getLogger(__name__)


class LocationDeduplicator:
    """
    地点去重器

    规则:
    - 名称转小写后相同即视为同一地点，保留首次出现的顺序
    - 重复出现时追加原文提及
    - 只有新结果的置信度严格更高时才替换坐标、置信度和来源，不会降级
    - 来源不做合并
    """

    @staticmethod
    def key(location: ResolvedLocation) -> str:
        return location.name.lower()

    def merge(self, locations: Iterable[ResolvedLocation]) -> List[ResolvedLocation]:
        """
        合并重复地点

        Args:
            locations: 按候选顺序排列的地点

        Returns:
            去重后的地点列表（新对象，不修改输入）
        """
        merged: Dict[str, ResolvedLocation] = {}
        total = 0

        for location in locations:
            total += 1
            key = self.key(location)
            existing = merged.get(key)

            if existing is None:
                merged[key] = ResolvedLocation(
                    name=location.name,
                    description=location.description,
                    coordinate=location.coordinate,
                    confidence=location.confidence,
                    sources=list(location.sources),
                    mentions=list(location.mentions)
                )
                continue

            existing.mentions.extend(location.mentions)

            if location.confidence.outranks(existing.confidence):
                logger.debug(
                    f"{existing.name}: 置信度 {existing.confidence.value} -> {location.confidence.value}"
                )
                existing.coordinate = location.coordinate
                existing.confidence = location.confidence
                existing.sources = list(location.sources)

        if len(merged) < total:
            logger.info(f"去重: {total} -> {len(merged)} 个地点")

        return list(merged.values())
