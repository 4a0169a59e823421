"""
地理置信度引擎测试
"""

import asyncio

import pytest

from geotext_extraction.core import Confidence, Coordinate, RawCandidate
from geotext_extraction.core.exceptions import (
    ConfigException,
    GeocodingAPIException,
    GeocodingTimeoutException
)
from geotext_extraction.geocoding import GeoConfidenceEngine

from conftest import (
    FakeGeocodeProvider,
    LONDON_GOOGLE,
    LONDON_NOMINATIM,
    SPRINGFIELD_IL,
    SPRINGFIELD_MA,
    StubConfigLoader
)


def _engine(google=None, nominatim=None, **kwargs):
    return GeoConfidenceEngine(
        [FakeGeocodeProvider('google', google), FakeGeocodeProvider('nominatim', nominatim)],
        **kwargs
    )


class TestAgreement:

    @pytest.mark.asyncio
    async def test_agreeing_providers_give_high_with_mean(self):
        resolution = await _engine(LONDON_GOOGLE, LONDON_NOMINATIM).resolve("London")

        assert resolution.confidence == Confidence.HIGH
        assert resolution.sources == ['google', 'nominatim']
        assert resolution.coordinate.lat == pytest.approx(51.50735, abs=1e-6)
        assert resolution.coordinate.lon == pytest.approx(-0.12775, abs=1e-6)

    @pytest.mark.asyncio
    async def test_westminster_pair_exact_midpoint(self):
        engine = _engine(Coordinate(51.5007, -0.1246), Coordinate(51.5008, -0.1245))
        resolution = await engine.resolve("Big Ben")

        assert resolution.confidence == Confidence.HIGH
        assert resolution.coordinate == Coordinate(51.50075, -0.12455)
        assert resolution.sources == ['google', 'nominatim']

    @pytest.mark.asyncio
    async def test_disagreeing_providers_give_medium_with_primary(self):
        resolution = await _engine(SPRINGFIELD_IL, SPRINGFIELD_MA).resolve("Springfield")

        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.coordinate == SPRINGFIELD_IL
        assert resolution.sources == ['google', 'nominatim']

    @pytest.mark.asyncio
    async def test_threshold_is_strict(self):
        a = Coordinate(0.0, 0.0)
        b = Coordinate(0.0, 0.1)
        distance = a.distance_to(b)

        resolution = await _engine(a, b, threshold_km=distance).resolve("Edge")
        assert resolution.confidence == Confidence.MEDIUM

        resolution = await _engine(a, b, threshold_km=distance + 0.01).resolve("Edge")
        assert resolution.confidence == Confidence.HIGH

    @pytest.mark.asyncio
    async def test_coordinates_rounded(self):
        precise = Coordinate(48.123456789, 2.987654321)
        resolution = await _engine(None, precise).resolve("Somewhere")
        assert resolution.coordinate == Coordinate(48.123457, 2.987654)


class TestSingleSource:

    @pytest.mark.asyncio
    async def test_only_secondary(self):
        resolution = await _engine(None, LONDON_NOMINATIM).resolve("London")

        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.coordinate == LONDON_NOMINATIM
        assert resolution.sources == ['nominatim']

    @pytest.mark.asyncio
    async def test_only_primary(self):
        resolution = await _engine(LONDON_GOOGLE, None).resolve("London")

        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.sources == ['google']

    @pytest.mark.asyncio
    async def test_single_provider_configured(self):
        engine = GeoConfidenceEngine([FakeGeocodeProvider('nominatim', LONDON_NOMINATIM)])
        resolution = await engine.resolve("London")

        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.sources == ['nominatim']


class TestFallbacks:

    @pytest.mark.asyncio
    async def test_llm_estimate(self):
        estimate = Coordinate(-18.2871, 147.6992)
        resolution = await _engine().resolve("Great Barrier Reef", estimate)

        assert resolution.confidence == Confidence.LOW
        assert resolution.coordinate == estimate
        assert resolution.sources == ['llm']

    @pytest.mark.asyncio
    async def test_provider_result_preferred_over_estimate(self):
        resolution = await _engine(None, LONDON_NOMINATIM).resolve("London", Coordinate(1.0, 1.0))
        assert resolution.sources == ['nominatim']

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat,lon", [
        (float('nan'), float('inf')),
        (123.0, 45.0),
    ])
    async def test_invalid_estimate_leaves_location_unresolved(self, lat, lon):
        estimate = RawCandidate("Nowhere", "d", "Nowhere", lat, lon).estimated_coordinate
        resolution = await _engine().resolve("Nowhere", estimate)

        assert resolution.coordinate is None
        assert resolution.sources == []

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        resolution = await _engine().resolve("Atlantis")

        assert resolution.confidence == Confidence.LOW
        assert resolution.coordinate is None
        assert resolution.sources == []
        assert not resolution.is_resolved


class TestProviderFailures:

    @pytest.mark.asyncio
    async def test_error_counts_as_not_found(self):
        engine = _engine(GeocodingAPIException("HTTP 500", status_code=500), LONDON_NOMINATIM)
        resolution = await engine.resolve("London")

        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.sources == ['nominatim']

    @pytest.mark.asyncio
    async def test_unexpected_error_counts_as_not_found(self):
        resolution = await _engine(LONDON_GOOGLE, KeyError("lat")).resolve("London")
        assert resolution.sources == ['google']

    @pytest.mark.asyncio
    async def test_all_providers_fail(self):
        engine = _engine(GeocodingTimeoutException("slow"), GeocodingAPIException("down"))
        resolution = await engine.resolve("London", Coordinate(51.5, -0.12))

        assert resolution.confidence == Confidence.LOW
        assert resolution.sources == ['llm']

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self):
        engine = GeoConfidenceEngine(
            [
                FakeGeocodeProvider('google', LONDON_GOOGLE, delay=0.5),
                FakeGeocodeProvider('nominatim', LONDON_NOMINATIM)
            ],
            timeout=0.01
        )
        resolution = await engine.resolve("London")

        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.sources == ['nominatim']

    @pytest.mark.asyncio
    async def test_providers_queried_concurrently(self):
        providers = [
            FakeGeocodeProvider('google', LONDON_GOOGLE, delay=0.2),
            FakeGeocodeProvider('nominatim', LONDON_NOMINATIM, delay=0.2)
        ]
        loop = asyncio.get_running_loop()
        start = loop.time()
        await GeoConfidenceEngine(providers).resolve("London")
        assert loop.time() - start < 0.35


class TestConfiguration:

    def test_more_than_two_providers_rejected(self):
        providers = [FakeGeocodeProvider(pid) for pid in ('google', 'nominatim', 'other')]
        with pytest.raises(ConfigException):
            GeoConfidenceEngine(providers)

    def test_invalid_threshold_rejected(self):
        with pytest.raises(ConfigException):
            GeoConfidenceEngine([], threshold_km=0)

    def test_from_config(self):
        config = StubConfigLoader({'geocoding.agreement_threshold_km': 5, 'geocoding.coordinate_precision': 4})
        engine = GeoConfidenceEngine.from_config([FakeGeocodeProvider('google')], config)

        assert engine.threshold_km == 5.0
        assert engine.precision == 4
        assert engine.timeout == 10
