"""
地理置信度引擎 - 多来源交叉验证

置信度由来源之间的一致性决定：
- high: 两个地理编码提供方都有结果且距离小于阈值，坐标取两者平均
- medium: 两者都有结果但距离不小于阈值（取主提供方坐标），或只有一个提供方有结果
- low: 提供方都没有结果，使用模型估计的坐标；连估计都没有时坐标为空、来源为空
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from .base import BaseGeocodeProvider
from ..core import Confidence, Coordinate, GeoResolution, LLM_SOURCE
from ..core.exceptions import ConfigException, GeocodingException

logger = logging.getLogger(__name__)

DEFAULT_AGREEMENT_THRESHOLD_KM = 10.0
DEFAULT_COORDINATE_PRECISION = 6


class GeoConfidenceEngine:
    """
    地理置信度引擎

    并发查询全部提供方，按一致性规则给出坐标、置信度和来源。
    单个提供方的任何失败都只当作"查询不到"处理。
    """

    def __init__(
        self,
        providers: Sequence[BaseGeocodeProvider],
        threshold_km: float = DEFAULT_AGREEMENT_THRESHOLD_KM,
        precision: int = DEFAULT_COORDINATE_PRECISION,
        timeout: Optional[float] = None
    ):
        """
        初始化引擎

        Args:
            providers: 按优先级排列的提供方（第一个为主提供方）
            threshold_km: 判定一致的距离阈值（公里）
            precision: 输出坐标保留的小数位数
            timeout: 单个提供方查询的总超时（秒），None 表示不限制

        Raises:
            ConfigException: 提供方超过两个或阈值非法
        """
        if len(providers) > 2:
            raise ConfigException(
                "At most 2 geocoding providers are supported",
                details={'providers': [p.provider_id for p in providers]}
            )
        if threshold_km <= 0:
            raise ConfigException(f"Invalid agreement threshold: {threshold_km}")

        self.providers = list(providers)
        self.threshold_km = threshold_km
        self.precision = precision
        self.timeout = timeout

    @classmethod
    def from_config(cls, providers: Sequence[BaseGeocodeProvider], config_loader) -> 'GeoConfidenceEngine':
        """使用配置中的阈值、精度和超时创建引擎"""
        return cls(
            providers,
            threshold_km=float(config_loader.get('geocoding.agreement_threshold_km', DEFAULT_AGREEMENT_THRESHOLD_KM)),
            precision=int(config_loader.get('geocoding.coordinate_precision', DEFAULT_COORDINATE_PRECISION)),
            timeout=config_loader.get('geocoding.timeout')
        )

    @property
    def provider_ids(self) -> List[str]:
        return [p.provider_id for p in self.providers]

    async def _query(self, provider: BaseGeocodeProvider, name: str) -> Optional[Coordinate]:
        if self.timeout:
            return await asyncio.wait_for(provider.geocode(name), timeout=self.timeout)
        return await provider.geocode(name)

    async def _query_all(self, name: str) -> List[Tuple[str, Optional[Coordinate]]]:
        """并发查询所有提供方，失败的提供方记为 None，顺序与配置一致"""
        results = await asyncio.gather(
            *(self._query(provider, name) for provider in self.providers),
            return_exceptions=True
        )

        answers = []
        for provider, result in zip(self.providers, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning(f"地理编码超时 [{provider.provider_id}] {name}")
                result = None
            elif isinstance(result, GeocodingException):
                logger.warning(f"地理编码失败 [{provider.provider_id}] {name}: {result}")
                result = None
            elif isinstance(result, Exception):
                logger.error(f"地理编码异常 [{provider.provider_id}] {name}: {result!r}")
                result = None
            elif isinstance(result, BaseException):
                raise result
            answers.append((provider.provider_id, result))
        return answers

    def score(
        self,
        answers: Sequence[Tuple[str, Optional[Coordinate]]],
        estimated: Optional[Coordinate] = None
    ) -> GeoResolution:
        """
        根据各提供方的答案和模型估计给出结论

        Args:
            answers: (provider_id, 坐标或None)，按优先级排列
            estimated: 模型估计坐标

        Returns:
            地理编码结论
        """
        found = [(pid, coord) for pid, coord in answers if coord is not None]

        if len(found) >= 2:
            (primary_id, primary), (secondary_id, secondary) = found[0], found[1]
            distance = primary.distance_to(secondary)
            if distance < self.threshold_km:
                return GeoResolution(
                    coordinate=primary.midpoint(secondary).rounded(self.precision),
                    confidence=Confidence.HIGH,
                    sources=[primary_id, secondary_id]
                )
            logger.debug(f"提供方结果不一致 ({distance:.1f} km)，使用 {primary_id} 的坐标")
            return GeoResolution(
                coordinate=primary.rounded(self.precision),
                confidence=Confidence.MEDIUM,
                sources=[primary_id, secondary_id]
            )

        if len(found) == 1:
            provider_id, coordinate = found[0]
            return GeoResolution(
                coordinate=coordinate.rounded(self.precision),
                confidence=Confidence.MEDIUM,
                sources=[provider_id]
            )

        if estimated is not None:
            return GeoResolution(
                coordinate=estimated.rounded(self.precision),
                confidence=Confidence.LOW,
                sources=[LLM_SOURCE]
            )

        return GeoResolution.unresolved()

    async def resolve(self, name: str, estimated: Optional[Coordinate] = None) -> GeoResolution:
        """
        解析单个地点

        Args:
            name: 地点规范名称
            estimated: 模型估计的坐标

        Returns:
            地理编码结论，不会因提供方失败而抛出异常
        """
        answers = await self._query_all(name)
        resolution = self.score(answers, estimated)
        logger.debug(
            f"{name}: {resolution.confidence.value} "
            f"sources={resolution.sources} coordinate={resolution.coordinate}"
        )
        return resolution
