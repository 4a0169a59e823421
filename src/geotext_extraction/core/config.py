"""
配置管理模块 - 单例模式配置加载器，支持热更新和环境变量
"""

import os
import copy
import logging
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from threading import Lock
from datetime import datetime

from .exceptions import ConfigNotFoundException

logger = logging.getLogger(__name__)

# 服务名到环境变量的映射
API_KEY_ENV_VARS = {
    'google-gemini': 'GOOGLE_GEMINI_API_KEY',
    'anthropic': 'ANTHROPIC_API_KEY',
    'openrouter': 'OPENROUTER_API_KEY',
    'google-maps': 'GOOGLE_MAPS_API_KEY',
}

DEFAULT_CONFIG: Dict[str, Any] = {
    'llm': {
        'extraction_chain': ['gemini-2.0-flash', 'claude-haiku-4.5'],
        'temperature': 0.1,
        'max_tokens': 4096,
        'timeout': 30,
        'retry_times': 1,
        'api_keys': {}
    },
    'geocoding': {
        'providers': ['google', 'nominatim'],
        'timeout': 10,
        'agreement_threshold_km': 10.0,
        'coordinate_precision': 6,
        'user_agent': 'GeoText-API/1.0 (https://github.com/geotext-api)',
        'api_keys': {}
    },
    'input': {
        'max_length': 100000
    },
    'output': {
        'formats': ['json'],
        'output_dir': './output',
        'null_unresolved_coordinates': False
    },
    'experiment': {
        'models': ['gemini-2.0-flash', 'claude-haiku-4.5', 'claude-sonnet-4'],
        'repetitions': 1,
        'samples_file': None,
        'output_dir': './experiment_results'
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    }
}

VALID_OUTPUT_FORMATS = ['csv', 'excel', 'json']
KNOWN_GEOCODING_PROVIDERS = ['google', 'nominatim']


class ConfigLoaderMeta(type):
    """线程安全的单例元类"""
    _instances = {}
    _lock = Lock()

    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            with cls._lock:
                if cls not in cls._instances:
                    cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


class ConfigLoader(metaclass=ConfigLoaderMeta):
    """
    配置文件加载器 - 单例模式

    特性:
    - 线程安全的单例实现
    - 支持配置热更新
    - 环境变量自动替换
    - 嵌套配置访问
    - 配置验证
    """

    def __init__(self, config_path: str = None):
        if hasattr(self, '_initialized'):
            return

        if config_path is None:
            config_path = self._find_project_config_file() or "configs/config.yaml"

        self.config_path = Path(config_path)
        self._config = None
        self._last_modified = None
        self._initialized = True

        self._load_config()

    def _find_project_config_file(self) -> Optional[str]:
        """
        查找项目配置文件

        从当前工作目录开始向上查找 configs/config.yaml，
        目录中还需要有 src/geotext_extraction 或 setup.py 才认为是项目根目录。
        """
        current_dir = Path.cwd()

        for _ in range(5):
            config_file = current_dir / "configs" / "config.yaml"
            if config_file.exists():
                project_indicators = [
                    current_dir / "src" / "geotext_extraction",
                    current_dir / "setup.py",
                ]
                if any(indicator.exists() for indicator in project_indicators):
                    return str(config_file)

            parent_dir = current_dir.parent
            if parent_dir == current_dir:
                break
            current_dir = parent_dir

        # 假设结构: src/geotext_extraction/core/config.py
        project_root = Path(__file__).resolve().parent.parent.parent.parent
        config_file = project_root / "configs" / "config.yaml"
        if config_file.exists():
            return str(config_file)

        return None

    def _load_config(self) -> Dict[str, Any]:
        """加载配置文件"""
        if not self.config_path.exists():
            if self._config is None:
                logger.warning(f"配置文件不存在 {self.config_path}, 使用默认配置")
                self._config = copy.deepcopy(DEFAULT_CONFIG)
            return self._config

        current_modified = self.config_path.stat().st_mtime

        # 文件未修改时直接返回缓存
        if self._config and self._last_modified == current_modified:
            return self._config

        with open(self.config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        self._config = self._merge_defaults(DEFAULT_CONFIG, self._replace_env_vars(config))
        self._last_modified = current_modified

        return self._config

    def _merge_defaults(self, defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """把文件中的配置覆盖到默认配置上"""
        merged = copy.deepcopy(defaults)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge_defaults(merged[key], value)
            else:
                merged[key] = value
        return merged

    @property
    def config(self) -> Dict[str, Any]:
        """获取配置，支持热更新"""
        return self._load_config()

    def _replace_env_vars(self, obj: Any) -> Any:
        """递归替换配置中的环境变量引用"""
        if isinstance(obj, dict):
            return {k: self._replace_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._replace_env_vars(item) for item in obj]
        elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            value = os.getenv(env_var)
            if value is None:
                logger.debug(f"环境变量 {env_var} 未设置")
            return value
        else:
            return obj

    # API密钥管理
    def get_api_key(self, service: str) -> Optional[str]:
        """获取指定服务的 API Key，配置中没有时读取环境变量"""
        section = 'geocoding' if service == 'google-maps' else 'llm'
        api_keys = self.config.get(section, {}).get('api_keys') or {}
        key = api_keys.get(service)

        if not key:
            env_var = API_KEY_ENV_VARS.get(service)
            if env_var:
                key = os.getenv(env_var)

        return key

    # LLM配置
    def get_llm_config(self) -> Dict[str, Any]:
        """获取LLM配置"""
        return self.config.get('llm', {})

    def get_extraction_chain(self) -> List[str]:
        """获取按优先级排列的提取模型列表"""
        return list(self.get('llm.extraction_chain', []) or [])

    # 地理编码配置
    def get_geocoding_config(self) -> Dict[str, Any]:
        """获取地理编码配置"""
        return self.config.get('geocoding', {})

    def get_geocoding_providers(self) -> List[str]:
        """获取按优先级排列的地理编码提供方"""
        return list(self.get('geocoding.providers', []) or [])

    # 输入输出配置
    def get_max_input_length(self) -> int:
        """获取输入文本最大长度"""
        return int(self.get('input.max_length', 100000))

    def get_output_config(self) -> Dict[str, Any]:
        """获取输出配置"""
        return self.config.get('output', {})

    def get_experiment_config(self) -> Dict[str, Any]:
        """获取实验配置"""
        return self.config.get('experiment', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """获取日志配置"""
        return self.config.get('logging', {})

    # 通用配置访问
    def get(self, path: str, default: Any = None) -> Any:
        """
        获取嵌套配置值

        Args:
            path: 点分隔的配置路径，如 'llm.timeout'
            default: 默认值

        Returns:
            配置值或默认值
        """
        keys = path.split('.')
        current = self.config

        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, path: str, value: Any) -> None:
        """
        设置配置值（仅内存中，不写入文件）

        Args:
            path: 点分隔的配置路径
            value: 要设置的值
        """
        keys = path.split('.')
        current = self.config

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    # 配置管理
    def reload_config(self) -> Dict[str, Any]:
        """强制重新加载配置文件"""
        self._last_modified = None
        return self._load_config()

    def validate_config(self) -> List[str]:
        """验证配置完整性"""
        errors = []

        if not self.get_extraction_chain():
            errors.append("缺少必要配置: llm.extraction_chain")

        providers = self.get_geocoding_providers()
        if len(providers) > 2:
            errors.append(f"地理编码提供方最多两个: {providers}")
        for provider in providers:
            if provider not in KNOWN_GEOCODING_PROVIDERS:
                errors.append(f"未知的地理编码提供方: {provider}")

        threshold = self.get('geocoding.agreement_threshold_km')
        if not isinstance(threshold, (int, float)) or threshold <= 0:
            errors.append(f"无效的一致性阈值: {threshold}")

        for fmt in self.get('output.formats', []) or []:
            if fmt not in VALID_OUTPUT_FORMATS:
                errors.append(f"无效的导出格式: {fmt}")

        return errors

    def get_config_summary(self) -> Dict[str, Any]:
        """获取配置摘要信息"""
        return {
            'config_file': str(self.config_path),
            'last_modified': datetime.fromtimestamp(self._last_modified).isoformat() if self._last_modified else None,
            'extraction_chain': self.get_extraction_chain(),
            'geocoding_providers': self.get_geocoding_providers(),
            'validation_errors': self.validate_config()
        }

    def __str__(self) -> str:
        return f"ConfigLoader(file={self.config_path}, chain={self.get_extraction_chain()})"

    def __repr__(self) -> str:
        return self.__str__()


_config_loader_instance = None


def get_config_loader(config_path: str = None) -> ConfigLoader:
    """
    获取配置加载器实例（单例）

    Args:
        config_path: 配置文件路径，如果为None则自动查找

    Returns:
        ConfigLoader实例
    """
    global _config_loader_instance
    if _config_loader_instance is None:
        _config_loader_instance = ConfigLoader(config_path)
    return _config_loader_instance


def reset_config_loader() -> None:
    """丢弃已创建的单例，下次获取时重新加载"""
    global _config_loader_instance
    with ConfigLoaderMeta._lock:
        ConfigLoaderMeta._instances.pop(ConfigLoader, None)
    _config_loader_instance = None


def load_config_file(config_path: str) -> ConfigLoader:
    """
    丢弃已有单例并加载指定的配置文件

    Args:
        config_path: 配置文件路径

    Returns:
        ConfigLoader实例

    Raises:
        ConfigNotFoundException: 文件不存在
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigNotFoundException(
            f"Config file not found: {config_path}",
            details={'path': str(path.absolute())}
        )

    reset_config_loader()
    return get_config_loader(str(path))


def get_config(config_path: str = None) -> Dict[str, Any]:
    """获取配置字典"""
    return get_config_loader(config_path).config


def setup_logging(config_loader: Optional[ConfigLoader] = None, level: Optional[str] = None) -> None:
    """
    根据配置初始化根日志器

    Args:
        config_loader: 配置加载器
        level: 覆盖配置中的日志级别
    """
    config_loader = config_loader or get_config_loader()
    logging_config = config_loader.get_logging_config()

    log_level = (level or logging_config.get('level') or 'INFO').upper()
    formatter = logging.Formatter(logging_config.get('format') or DEFAULT_CONFIG['logging']['format'])

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = logging_config.get('file')
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(log_level)

    # httpx 在 INFO 级别会记录每个请求
    logging.getLogger('httpx').setLevel(logging.WARNING)
