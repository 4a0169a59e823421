"""
单阶段提取器和分阶段提取器测试
"""

import asyncio

import pytest

from geotext_extraction.core import NO_MODEL
from geotext_extraction.core.exceptions import LLMAPIException, LLMTimeoutException
from geotext_extraction.extraction import LocationExtractor, StagedExtractor

from conftest import FakeLLMClient, StubConfigLoader, location_item, locations_json


def _extractor(model_id, *responses, **kwargs):
    return LocationExtractor(FakeLLMClient(model_id, responses), retry_delay=0, **kwargs)


class TestLocationExtractor:

    @pytest.mark.asyncio
    async def test_success(self):
        extractor = _extractor("gemini-2.0-flash", locations_json(location_item("Tokyo")))
        attempt = await extractor.extract("Trip to Tokyo")

        assert attempt.succeeded
        assert attempt.model_id == "gemini-2.0-flash"
        assert [c.name for c in attempt.candidates] == ["Tokyo"]
        assert "Trip to Tokyo" in extractor.llm_client.prompts[0]

    @pytest.mark.asyncio
    async def test_llm_error_becomes_failed_attempt(self):
        extractor = _extractor("gemini-2.0-flash", LLMAPIException("quota exceeded", status_code=429))
        attempt = await extractor.extract("text")

        assert not attempt.succeeded
        assert "quota exceeded" in attempt.error
        assert attempt.candidates == []

    @pytest.mark.asyncio
    async def test_malformed_response_becomes_failed_attempt(self):
        attempt = await _extractor("gemini-2.0-flash", "not json at all").extract("text")
        assert not attempt.succeeded

    @pytest.mark.asyncio
    async def test_timeout(self):
        extractor = LocationExtractor(
            FakeLLMClient("gemini-2.0-flash", [locations_json()], delay=0.5),
            timeout=0.01
        )
        attempt = await extractor.extract("text")

        assert not attempt.succeeded
        assert "timed out" in attempt.error

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        extractor = _extractor(
            "claude-haiku-4.5",
            LLMTimeoutException("slow"),
            locations_json(location_item("Berlin")),
            max_attempts=2
        )
        attempt = await extractor.extract("Berlin")

        assert attempt.succeeded
        assert len(extractor.llm_client.prompts) == 2


class TestStagedExtractor:

    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self):
        primary = _extractor("gemini-2.0-flash", locations_json(location_item("Paris")))
        fallback = _extractor("claude-haiku-4.5", locations_json(location_item("London")))

        candidates, model_used = await StagedExtractor([primary, fallback]).extract("Paris")

        assert model_used == "gemini-2.0-flash"
        assert [c.name for c in candidates] == ["Paris"]
        assert fallback.llm_client.prompts == []

    @pytest.mark.asyncio
    async def test_fallback_on_primary_failure(self):
        primary = _extractor("gemini-2.0-flash", LLMAPIException("boom"))
        fallback = _extractor("claude-haiku-4.5", locations_json(location_item("London")))

        candidates, model_used = await StagedExtractor([primary, fallback]).extract("London")

        assert model_used == "claude-haiku-4.5"
        assert [c.name for c in candidates] == ["London"]

    @pytest.mark.asyncio
    async def test_empty_primary_result_is_success(self):
        primary = _extractor("gemini-2.0-flash", '{"locations": []}')
        fallback = _extractor("claude-haiku-4.5", locations_json(location_item("London")))

        candidates, model_used = await StagedExtractor([primary, fallback]).extract("nothing here")

        assert candidates == []
        assert model_used == "gemini-2.0-flash"
        assert fallback.llm_client.prompts == []

    @pytest.mark.asyncio
    async def test_all_stages_fail(self):
        primary = _extractor("gemini-2.0-flash", LLMAPIException("boom"))
        fallback = _extractor("claude-haiku-4.5", asyncio.TimeoutError())

        candidates, model_used, attempts = await StagedExtractor([primary, fallback]).extract_with_attempts("x")

        assert candidates == []
        assert model_used == NO_MODEL
        assert [a.succeeded for a in attempts] == [False, False]

    @pytest.mark.asyncio
    async def test_no_stages(self):
        assert await StagedExtractor([]).extract("x") == ([], NO_MODEL)

    def test_from_config_skips_models_without_keys(self):
        config = StubConfigLoader(api_keys={'anthropic': 'test-key'})
        staged = StagedExtractor.from_config(config)
        assert staged.model_ids == ["claude-haiku-4.5"]

    def test_from_config_without_any_key(self, stub_config):
        assert StagedExtractor.from_config(stub_config).model_ids == []
