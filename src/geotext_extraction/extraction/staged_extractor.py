"""
分阶段提取器 - 按优先级依次尝试多个模型
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from .location_extractor import LocationExtractor
from ..core import ExtractionAttempt, RawCandidate, NO_MODEL, get_config_loader
from ..core.exceptions import ConfigException, LLMException
from ..llm import LLMClientFactory

logger = logging.getLogger(__name__)


class StagedExtractor:
    """
    分阶段提取器

    按顺序尝试每个阶段，第一个成功的阶段（空结果也算成功）决定结果和报告的模型。
    所有阶段都失败时返回空列表和 "none"，不抛出异常。
    """

    def __init__(self, extractors: Sequence[LocationExtractor]):
        self.extractors = list(extractors)

    @classmethod
    def from_config(cls, config_loader: Optional[Any] = None) -> 'StagedExtractor':
        """
        根据 llm.extraction_chain 构建提取链

        无法创建客户端的阶段（例如缺少 API Key）会被跳过并记录警告。
        """
        if config_loader is None:
            config_loader = get_config_loader()

        timeout = config_loader.get('llm.timeout')
        max_attempts = config_loader.get('llm.retry_times', 1)

        extractors = []
        for model_name in config_loader.get_extraction_chain():
            try:
                client = LLMClientFactory.create(model_name, config_loader)
            except (ConfigException, LLMException) as e:
                logger.warning(f"跳过提取阶段 {model_name}: {e}")
                continue
            extractors.append(LocationExtractor(client, timeout=timeout, max_attempts=max_attempts))

        if not extractors:
            logger.warning("没有可用的提取模型，所有请求都将返回空结果")
        else:
            logger.info(f"提取链: {[e.model_id for e in extractors]}")

        return cls(extractors)

    @property
    def model_ids(self) -> List[str]:
        return [e.model_id for e in self.extractors]

    async def extract_with_attempts(
        self, text: str
    ) -> Tuple[List[RawCandidate], str, List[ExtractionAttempt]]:
        """
        提取候选地点，同时返回每个阶段的尝试记录

        Args:
            text: 输入文本

        Returns:
            (候选地点列表, 使用的模型标识, 尝试记录)
        """
        attempts = []

        for extractor in self.extractors:
            attempt = await extractor.extract(text)
            attempts.append(attempt)
            if attempt.succeeded:
                return attempt.candidates, attempt.model_id, attempts
            logger.warning(f"阶段 {attempt.model_id} 失败，尝试下一个阶段")

        if self.extractors:
            logger.error("所有提取阶段均失败")
        return [], NO_MODEL, attempts

    async def extract(self, text: str) -> Tuple[List[RawCandidate], str]:
        """
        提取候选地点

        Returns:
            (候选地点列表, 使用的模型标识)
        """
        candidates, model_used, _ = await self.extract_with_attempts(text)
        return candidates, model_used

    async def close(self) -> None:
        """关闭所有客户端连接"""
        for extractor in self.extractors:
            await extractor.llm_client.close()
