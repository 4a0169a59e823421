"""
核心数据模型 - 候选地点、解析结果与提取结果
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Any
from enum import Enum

# 地球平均半径（公里）
EARTH_RADIUS_KM = 6371.0

# 模型坐标估计在来源列表中的标识
LLM_SOURCE = "llm"

# 所有提取阶段失败时报告的模型标识
NO_MODEL = "none"


class LLMModel(Enum):
    """支持的LLM模型枚举"""
    # Google Gemini系列
    GEMINI_2_0_FLASH = "gemini-2.0-flash"
    GEMINI_2_5_FLASH = "gemini-2.5-flash"

    # Anthropic Claude系列
    CLAUDE_HAIKU_4_5 = "claude-haiku-4.5"
    CLAUDE_SONNET_4 = "claude-sonnet-4"

    # OpenRouter
    GPT_4O_MINI_OPENROUTER = "gpt-4o-mini-openrouter"


class Confidence(Enum):
    """置信度等级（由多来源一致性得出，不是概率）"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """排序用的等级：high > medium > low"""
        return _CONFIDENCE_RANKS[self]

    def outranks(self, other: 'Confidence') -> bool:
        """是否严格高于另一个置信度"""
        return self.rank > other.rank


_CONFIDENCE_RANKS = {
    Confidence.LOW: 0,
    Confidence.MEDIUM: 1,
    Confidence.HIGH: 2,
}


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    计算两点之间的大圆距离

    Args:
        lat1: 起点纬度（度）
        lon1: 起点经度（度）
        lat2: 终点纬度（度）
        lon2: 终点经度（度）

    Returns:
        距离（公里）
    """
    lat1_rad, lon1_rad, lat2_rad, lon2_rad = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True)
class Coordinate:
    """WGS84经纬度坐标"""
    lat: float
    lon: float

    def distance_to(self, other: 'Coordinate') -> float:
        """计算到另一个坐标的大圆距离（公里）"""
        return haversine_distance_km(self.lat, self.lon, other.lat, other.lon)

    def midpoint(self, other: 'Coordinate') -> 'Coordinate':
        """两个坐标的算术平均"""
        return Coordinate((self.lat + other.lat) / 2, (self.lon + other.lon) / 2)

    def rounded(self, precision: int = 6) -> 'Coordinate':
        """按指定小数位数取整"""
        return Coordinate(round(self.lat, precision), round(self.lon, precision))

    def to_tuple(self) -> Tuple[float, float]:
        """转换为元组"""
        return (self.lat, self.lon)


@dataclass(frozen=True)
class RawCandidate:
    """提取器返回的候选地点，返回后不再修改"""
    name: str
    description: str
    mention: str
    estimated_lat: Optional[float] = None
    estimated_lon: Optional[float] = None

    @property
    def estimated_coordinate(self) -> Optional[Coordinate]:
        """模型估计的坐标，两个分量都存在、非零且在经纬度范围内时才有效"""
        lat, lon = self.estimated_lat, self.estimated_lon
        if not lat or not lon:
            return None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            return None
        return Coordinate(lat, lon)


@dataclass
class GeoResolution:
    """单个候选地点的地理编码结论"""
    coordinate: Optional[Coordinate]
    confidence: Confidence
    sources: List[str] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        """没有任何来源时坐标不可信"""
        return bool(self.sources)

    @classmethod
    def unresolved(cls) -> 'GeoResolution':
        return cls(coordinate=None, confidence=Confidence.LOW, sources=[])


@dataclass
class ResolvedLocation:
    """经过地理编码的地点，mentions 在去重阶段扩展"""
    name: str
    description: str
    coordinate: Optional[Coordinate]
    confidence: Confidence
    sources: List[str] = field(default_factory=list)
    mentions: List[str] = field(default_factory=list)

    @classmethod
    def from_candidate(cls, candidate: RawCandidate, resolution: GeoResolution) -> 'ResolvedLocation':
        return cls(
            name=candidate.name,
            description=candidate.description,
            coordinate=resolution.coordinate,
            confidence=resolution.confidence,
            sources=list(resolution.sources),
            mentions=[candidate.mention]
        )

    @property
    def is_resolved(self) -> bool:
        return bool(self.sources) and self.coordinate is not None

    @property
    def latitude(self) -> float:
        # 未解析时保留 0.0 作为对外兼容的哨兵值
        return self.coordinate.lat if self.coordinate else 0.0

    @property
    def longitude(self) -> float:
        return self.coordinate.lon if self.coordinate else 0.0

    def to_dict(self, null_unresolved: bool = False) -> Dict[str, Any]:
        """
        转换为对外输出格式

        Args:
            null_unresolved: 未解析时经纬度输出 None 而不是 0.0

        Returns:
            输出字典
        """
        if null_unresolved and self.coordinate is None:
            latitude, longitude = None, None
        else:
            latitude, longitude = self.latitude, self.longitude

        return {
            'name': self.name,
            'description': self.description,
            'latitude': latitude,
            'longitude': longitude,
            'confidence': self.confidence.value,
            'sources': list(self.sources),
            'raw_mentions': list(self.mentions)
        }


@dataclass
class ExtractionAttempt:
    """单个提取阶段的结果：成功时 error 为 None"""
    model_id: str
    candidates: List[RawCandidate] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, model_id: str, error: str, duration_ms: float = 0.0) -> 'ExtractionAttempt':
        return cls(model_id=model_id, candidates=[], error=error, duration_ms=duration_ms)


@dataclass
class ExtractionResult:
    """一次流水线调用的最终结果"""
    locations: List[ResolvedLocation]
    model_used: str
    input_length: int = 0
    processing_time_ms: float = 0.0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def resolved_count(self) -> int:
        """有可信坐标的地点数量"""
        return sum(1 for loc in self.locations if loc.is_resolved)

    def confidence_breakdown(self) -> Dict[str, int]:
        """各置信度等级的地点数量"""
        breakdown = {level.value: 0 for level in Confidence}
        for loc in self.locations:
            breakdown[loc.confidence.value] += 1
        return breakdown

    def to_response(self, null_unresolved: bool = False) -> Dict[str, Any]:
        """转换为对外响应格式"""
        return {
            'success': True,
            'locations': [loc.to_dict(null_unresolved) for loc in self.locations],
            'model_used': self.model_used,
            'input_length': self.input_length,
            'processing_time_ms': self.processing_time_ms
        }


@dataclass
class ComparisonRecord:
    """模型对比实验中单个模型对单条文本的一次运行记录"""
    model: str
    text_index: int
    repetition: int
    location_count: int = 0
    location_names: List[str] = field(default_factory=list)
    duration_ms: float = 0.0
    error: Optional[str] = None
    text_preview: str = ""

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def from_attempt(
        cls,
        attempt: ExtractionAttempt,
        text_index: int,
        repetition: int,
        text_preview: str = ""
    ) -> 'ComparisonRecord':
        return cls(
            model=attempt.model_id,
            text_index=text_index,
            repetition=repetition,
            location_count=len(attempt.candidates),
            location_names=[c.name for c in attempt.candidates],
            duration_ms=round(attempt.duration_ms, 1),
            error=attempt.error,
            text_preview=text_preview
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'model': self.model,
            'text_index': self.text_index,
            'repetition': self.repetition,
            'text_preview': self.text_preview,
            'succeeded': self.succeeded,
            'location_count': self.location_count,
            'location_names': '; '.join(self.location_names),
            'duration_ms': self.duration_ms,
            'error': self.error or ''
        }
