"""
自定义异常类 - 定义系统中使用的所有异常
"""

import logging
from typing import Optional, Any, Dict


class GeoTextException(Exception):
    """基础异常类"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# 配置相关异常
class ConfigException(GeoTextException):
    """配置异常"""
    pass


class ConfigNotFoundException(ConfigException):
    """配置文件未找到"""
    pass


class InvalidConfigException(ConfigException):
    """无效的配置"""
    pass


# LLM相关异常
class LLMException(GeoTextException):
    """LLM异常基类"""
    pass


class LLMConnectionException(LLMException):
    """LLM连接异常"""
    pass


class LLMAPIException(LLMException):
    """LLM API调用异常"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_body: Optional[str] = None, **kwargs):
        details = {'status_code': status_code, 'response_body': response_body}
        details.update(kwargs)
        super().__init__(message, details)
        self.status_code = status_code


class LLMTimeoutException(LLMException):
    """LLM调用超时"""
    pass


class LLMRateLimitException(LLMException):
    """LLM速率限制"""
    pass


class LLMAuthenticationException(LLMException):
    """LLM鉴权失败（密钥无效或额度不足）"""
    pass


class InvalidModelException(LLMException):
    """无效的模型"""
    pass


# 地理编码相关异常
class GeocodingException(GeoTextException):
    """地理编码异常基类"""
    pass


class GeocodingTimeoutException(GeocodingException):
    """地理编码请求超时"""
    pass


class GeocodingAPIException(GeocodingException):
    """地理编码API调用异常"""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        details = {'status_code': status_code}
        details.update(kwargs)
        super().__init__(message, details)
        self.status_code = status_code


class GeocodingRateLimitException(GeocodingAPIException):
    """地理编码速率限制"""
    pass


class InvalidGeocodeResponseException(GeocodingException):
    """地理编码响应格式无效"""
    pass


# 文档处理异常
class DocumentException(GeoTextException):
    """文档处理异常基类"""
    pass


class DocumentNotFoundException(DocumentException):
    """文档未找到"""
    pass


class DocumentReadException(DocumentException):
    """文档读取异常"""
    pass


class UnsupportedDocumentFormatException(DocumentException):
    """不支持的文档格式"""
    pass


# 提取相关异常
class ExtractionException(GeoTextException):
    """提取异常基类"""
    pass


class InvalidLocationFormatException(ExtractionException):
    """模型返回的地点格式无效"""
    pass


# 验证相关异常
class ValidationException(GeoTextException):
    """验证异常基类"""
    pass


class InvalidInputException(ValidationException):
    """无效输入"""
    pass


class TextTooLongException(ValidationException):
    """输入文本超长"""
    pass


# 导出相关异常
class ExportException(GeoTextException):
    """导出异常基类"""
    pass


class UnsupportedExportFormatException(ExportException):
    """不支持的导出格式"""
    pass


# 实验相关异常
class ExperimentException(GeoTextException):
    """实验异常基类"""
    pass


# 工具函数
def handle_exception(exception: Exception, context: str = None,
                     reraise: bool = True) -> Optional[Dict[str, Any]]:
    """
    统一的异常处理函数

    Args:
        exception: 异常对象
        context: 上下文信息
        reraise: 是否重新抛出异常

    Returns:
        异常信息字典
    """
    error_info = {
        'type': type(exception).__name__,
        'message': str(exception),
        'context': context
    }

    if isinstance(exception, GeoTextException):
        error_info['details'] = exception.details

    logger = logging.getLogger(__name__)
    logger.error(f"Exception in {context}: {error_info}")

    if reraise:
        raise exception

    return error_info
