"""
输入验证 - 流水线调用前的文本检查
"""

from typing import Any

from .exceptions import InvalidInputException, TextTooLongException

DEFAULT_MAX_TEXT_LENGTH = 100_000


def validate_text(text: Any, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> str:
    """
    验证待提取的文本

    Args:
        text: 调用方传入的文本
        max_length: 允许的最大字符数

    Returns:
        原样返回的文本

    Raises:
        InvalidInputException: 文本缺失、为空或类型错误
        TextTooLongException: 文本超过最大长度
    """
    if not isinstance(text, str) or not text:
        raise InvalidInputException(
            'Missing or invalid "text" field',
            details={'type': type(text).__name__}
        )

    if len(text) > max_length:
        raise TextTooLongException(
            f"Text exceeds maximum length of {max_length:,} characters",
            details={'input_length': len(text), 'max_length': max_length}
        )

    return text
