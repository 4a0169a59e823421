"""
地点提取器 - 使用单个LLM从文本中提取候选地点
"""

import asyncio
import time
import logging
from typing import Optional

from .prompts import build_extraction_prompt
from .response_parser import parse_extraction_response
from ..core import ExtractionAttempt
from ..llm import BaseLLMClient

logger = logging.getLogger(__name__)


class LocationExtractor:
    """
    地点提取器

    调用一个LLM并解析其响应。任何失败都转换为失败的 ExtractionAttempt，不向外抛出。
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        timeout: Optional[float] = None,
        max_attempts: int = 1,
        retry_delay: float = 1.0
    ):
        """
        初始化提取器

        Args:
            llm_client: LLM客户端实例
            timeout: 单次调用的总超时（秒），None 表示只依赖客户端自身超时
            max_attempts: 每个阶段的最多尝试次数
            retry_delay: 重试间隔（秒）
        """
        self.llm_client = llm_client
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.retry_delay = retry_delay

    @property
    def model_id(self) -> str:
        return self.llm_client.model_id

    async def _call(self, prompt: str) -> str:
        if self.timeout:
            response = await asyncio.wait_for(self.llm_client.generate(prompt), timeout=self.timeout)
        else:
            response = await self.llm_client.generate(prompt)
        logger.debug(f"LLM响应 [{self.model_id}]: {response.content[:500]}")
        return response.content

    async def extract(self, text: str) -> ExtractionAttempt:
        """
        从文本中提取候选地点

        Args:
            text: 输入文本

        Returns:
            提取结果，成功时 error 为 None（候选列表可以为空）
        """
        prompt = build_extraction_prompt(text)
        start_time = time.perf_counter()
        last_error = None

        for attempt in range(self.max_attempts):
            try:
                content = await self._call(prompt)
                candidates = parse_extraction_response(content)
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.info(f"[{self.model_id}] 提取到 {len(candidates)} 个候选地点")
                return ExtractionAttempt(
                    model_id=self.model_id,
                    candidates=candidates,
                    duration_ms=duration_ms
                )
            except asyncio.TimeoutError:
                last_error = f"timed out after {self.timeout}s"
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"

            if attempt < self.max_attempts - 1:
                logger.warning(f"[{self.model_id}] 提取失败，重试 {attempt + 1}/{self.max_attempts}: {last_error}")
                await asyncio.sleep(self.retry_delay)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.warning(f"[{self.model_id}] 提取失败（共尝试{self.max_attempts}次）: {last_error}")
        return ExtractionAttempt.failure(self.model_id, last_error, duration_ms)
