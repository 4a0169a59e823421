"""
模型响应解析 - 把提取模型的文本输出转换为候选地点
"""

import json
import math
import re
import logging
from typing import Any, List, Optional

from ..core import RawCandidate
from ..core.exceptions import InvalidLocationFormatException

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('name', 'description', 'raw_mention')

_FENCE_OPEN = re.compile(r'```(?:json)?\n?')
_FENCE_CLOSE = re.compile(r'```$')


def strip_code_fences(text: str) -> str:
    """去掉 markdown 代码块标记"""
    text = text.strip()
    if text.startswith('```'):
        text = _FENCE_OPEN.sub('', text)
        text = _FENCE_CLOSE.sub('', text.strip())
    return text.strip()


def extract_last_json_object(content: str) -> str:
    """
    从混合内容中提取最后一个完整的JSON对象

    推理型模型常在JSON前后输出说明文字，JSON通常位于最后。

    Args:
        content: 混合内容

    Returns:
        JSON对象字符串

    Raises:
        InvalidLocationFormatException: 找不到有效的JSON对象
    """
    # 收集所有顶层的 {...} 片段，字符串内的括号不计入深度
    spans = []
    depth = 0
    start_pos = None
    in_string = False
    escaped = False

    for pos, ch in enumerate(content):
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and depth > 0:
            in_string = True
        elif ch == '{':
            if depth == 0:
                start_pos = pos
            depth += 1
        elif ch == '}' and depth > 0:
            depth -= 1
            if depth == 0:
                spans.append((start_pos, pos + 1))

    for start, end in reversed(spans):
        candidate = content[start:end]
        try:
            json.loads(candidate)
        except json.JSONDecodeError:
            continue
        return candidate

    raise InvalidLocationFormatException(
        "No JSON object found in response",
        details={
            'content_length': len(content),
            'content_preview': content[:200] + '...' if len(content) > 200 else content
        }
    )


def safe_float(value: Any) -> Optional[float]:
    """
    安全地将值转换为浮点数

    Args:
        value: 输入值

    Returns:
        浮点数或None
    """
    if value is None or value == '' or isinstance(value, bool):
        return None

    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, TypeError):
        logger.debug(f"无法转换为浮点数: {value}")
        return None

    # nan / inf 无法写入JSON响应
    if not math.isfinite(number):
        logger.debug(f"非有限数值: {value}")
        return None
    return number


def _to_candidate(item: Any) -> Optional[RawCandidate]:
    if not isinstance(item, dict):
        logger.warning(f"跳过非对象的地点条目: {item!r}")
        return None

    fields = {
        key: item[key].strip() if isinstance(item.get(key), str) else ''
        for key in REQUIRED_FIELDS
    }
    missing = [key for key, value in fields.items() if not value]
    if missing:
        logger.warning(f"地点条目缺少字段 {missing}，跳过: {item}")
        return None

    # raw_mention 保留原文，不去空白
    return RawCandidate(
        name=fields['name'],
        description=fields['description'],
        mention=item['raw_mention'],
        estimated_lat=safe_float(item.get('llm_lat')),
        estimated_lon=safe_float(item.get('llm_lon'))
    )


def parse_payload(payload: Any) -> List[RawCandidate]:
    """
    把已解码的JSON转换为候选地点

    Raises:
        InvalidLocationFormatException: 顶层不是对象或 locations 不是数组
    """
    if not isinstance(payload, dict):
        raise InvalidLocationFormatException(
            f"Unexpected response format: {type(payload).__name__}"
        )

    locations = payload.get('locations')
    if locations is None:
        return []
    if not isinstance(locations, list):
        raise InvalidLocationFormatException(
            f'"locations" must be an array, got {type(locations).__name__}'
        )

    candidates = []
    for item in locations:
        candidate = _to_candidate(item)
        if candidate:
            candidates.append(candidate)
    return candidates


def parse_extraction_response(text: str) -> List[RawCandidate]:
    """
    解析提取模型的响应文本

    Args:
        text: 模型原始输出

    Returns:
        候选地点列表（可能为空）

    Raises:
        InvalidLocationFormatException: 响应无法解析
    """
    if not text or not text.strip():
        raise InvalidLocationFormatException("Empty response")

    content = strip_code_fences(text)

    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        payload = json.loads(extract_last_json_object(content))

    return parse_payload(payload)
