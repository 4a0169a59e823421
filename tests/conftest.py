"""
Pytest配置文件
"""
import asyncio
import copy
import json
import sys
from pathlib import Path

# 添加src目录到Python路径
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# 测试配置
import pytest

from geotext_extraction.core import Coordinate
from geotext_extraction.core.config import DEFAULT_CONFIG
from geotext_extraction.llm import LLMResponse


class StubConfigLoader:
    """基于字典的配置，接口与 ConfigLoader 一致"""

    def __init__(self, overrides=None, api_keys=None):
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        for path, value in (overrides or {}).items():
            self.set(path, value)
        self.api_keys = api_keys or {}

    def get(self, path, default=None):
        current = self.config
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set(self, path, value):
        keys = path.split('.')
        current = self.config
        for key in keys[:-1]:
            current = current.setdefault(key, {})
        current[keys[-1]] = value

    def get_api_key(self, service):
        return self.api_keys.get(service)

    def get_extraction_chain(self):
        return list(self.get('llm.extraction_chain', []))

    def get_geocoding_providers(self):
        return list(self.get('geocoding.providers', []))

    def get_max_input_length(self):
        return int(self.get('input.max_length', 100000))

    def get_output_config(self):
        return self.get('output', {})

    def get_experiment_config(self):
        return self.get('experiment', {})

    def get_logging_config(self):
        return self.get('logging', {})


class FakeLLMClient:
    """按顺序返回预设响应的LLM客户端；响应为异常实例时抛出"""

    def __init__(self, model_id, responses, delay=0.0):
        self.model_id = model_id
        self.responses = list(responses)
        self.delay = delay
        self.prompts = []
        self.closed = False

    async def generate(self, prompt, **kwargs):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return LLMResponse(content=response, model=self.model_id, metadata={})

    async def close(self):
        self.closed = True


class FakeGeocodeProvider:
    """返回固定坐标的提供方；answers 和 delays 可以按查询名称分别指定"""

    def __init__(self, provider_id, answer=None, answers=None, delay=0.0, delays=None):
        self.provider_id = provider_id
        self.answer = answer
        self.answers = answers or {}
        self.delay = delay
        self.delays = delays or {}
        self.completed = []
        self.queries = []

    async def geocode(self, query):
        self.queries.append(query)
        delay = self.delays.get(query, self.delay)
        if delay:
            await asyncio.sleep(delay)
        self.completed.append(query)
        result = self.answers.get(query, self.answer)
        if isinstance(result, BaseException):
            raise result
        return result


def locations_json(*locations):
    """构造模型响应文本"""
    return json.dumps({'locations': list(locations)})


def location_item(name, mention=None, description=None, lat=None, lon=None):
    item = {
        'name': name,
        'description': description or f"{name} description",
        'raw_mention': mention or name,
    }
    if lat is not None:
        item['llm_lat'] = lat
    if lon is not None:
        item['llm_lon'] = lon
    return item


# 常用坐标
LONDON_GOOGLE = Coordinate(51.5074, -0.1278)
LONDON_NOMINATIM = Coordinate(51.5073, -0.1277)
SPRINGFIELD_IL = Coordinate(39.7817, -89.6501)
SPRINGFIELD_MA = Coordinate(42.1015, -72.5898)
PARIS = Coordinate(48.8566, 2.3522)


@pytest.fixture
def temp_output_dir(tmp_path):
    """临时输出目录"""
    output = tmp_path / "output"
    output.mkdir()
    return output


@pytest.fixture
def stub_config():
    """默认配置（无 API Key）"""
    return StubConfigLoader()


@pytest.fixture
def configured_stub():
    """带全部 API Key 的配置"""
    return StubConfigLoader(api_keys={
        'google-gemini': 'test-gemini-key',
        'anthropic': 'test-anthropic-key',
        'openrouter': 'test-openrouter-key',
        'google-maps': 'test-maps-key',
    })
