"""
数据模型测试
"""

import pytest

from geotext_extraction.core import (
    Confidence,
    Coordinate,
    ExtractionResult,
    GeoResolution,
    RawCandidate,
    ResolvedLocation,
    haversine_distance_km
)

from conftest import LONDON_GOOGLE, LONDON_NOMINATIM, PARIS, SPRINGFIELD_IL, SPRINGFIELD_MA


class TestHaversine:

    def test_london_to_paris(self):
        distance = haversine_distance_km(LONDON_GOOGLE.lat, LONDON_GOOGLE.lon, PARIS.lat, PARIS.lon)
        assert distance == pytest.approx(343.5, abs=1.0)

    def test_same_point_is_zero(self):
        assert PARIS.distance_to(PARIS) == 0.0

    def test_close_london_answers_under_threshold(self):
        assert LONDON_GOOGLE.distance_to(LONDON_NOMINATIM) < 0.1

    def test_springfields_far_apart(self):
        assert SPRINGFIELD_IL.distance_to(SPRINGFIELD_MA) > 1000

    def test_symmetric(self):
        assert PARIS.distance_to(LONDON_GOOGLE) == pytest.approx(LONDON_GOOGLE.distance_to(PARIS))


class TestCoordinate:

    def test_midpoint(self):
        mid = Coordinate(0.0, 0.0).midpoint(Coordinate(2.0, 4.0))
        assert mid == Coordinate(1.0, 2.0)

    def test_rounded_to_six_decimals(self):
        assert Coordinate(51.12345678, -0.98765432).rounded() == Coordinate(51.123457, -0.987654)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            PARIS.lat = 0.0


class TestConfidence:

    def test_ordering(self):
        assert Confidence.HIGH.outranks(Confidence.MEDIUM)
        assert Confidence.MEDIUM.outranks(Confidence.LOW)
        assert not Confidence.LOW.outranks(Confidence.LOW)
        assert not Confidence.MEDIUM.outranks(Confidence.HIGH)


class TestRawCandidate:

    def test_estimate_requires_both_values(self):
        assert RawCandidate("Paris", "d", "Paris", 48.85, None).estimated_coordinate is None
        assert RawCandidate("Paris", "d", "Paris", None, 2.35).estimated_coordinate is None

    def test_zero_estimate_is_ignored(self):
        assert RawCandidate("Null Island", "d", "x", 0.0, 0.0).estimated_coordinate is None

    def test_estimate(self):
        candidate = RawCandidate("Paris", "d", "Paris", 48.85, 2.35)
        assert candidate.estimated_coordinate == Coordinate(48.85, 2.35)

    @pytest.mark.parametrize("lat,lon", [
        (91.0, 2.35),
        (-90.5, 2.35),
        (48.85, 180.1),
        (48.85, -200.0),
        (float('nan'), 2.35),
        (48.85, float('inf')),
    ])
    def test_invalid_estimate_is_ignored(self, lat, lon):
        assert RawCandidate("X", "d", "x", lat, lon).estimated_coordinate is None

    def test_estimate_on_bounds(self):
        assert RawCandidate("Pole", "d", "x", 90.0, -180.0).estimated_coordinate == Coordinate(90.0, -180.0)


class TestResolvedLocation:

    def _unresolved(self):
        candidate = RawCandidate("Atlantis", "Mythical island", "Atlantis")
        return ResolvedLocation.from_candidate(candidate, GeoResolution.unresolved())

    def test_unresolved_keeps_zero_sentinel_on_wire(self):
        data = self._unresolved().to_dict()
        assert data['latitude'] == 0.0
        assert data['longitude'] == 0.0
        assert data['confidence'] == 'low'
        assert data['sources'] == []

    def test_unresolved_can_emit_null(self):
        data = self._unresolved().to_dict(null_unresolved=True)
        assert data['latitude'] is None
        assert data['longitude'] is None

    def test_from_candidate(self):
        candidate = RawCandidate("Paris", "Capital of France", "paris")
        resolution = GeoResolution(PARIS, Confidence.MEDIUM, ['nominatim'])
        location = ResolvedLocation.from_candidate(candidate, resolution)

        assert location.is_resolved
        assert location.mentions == ['paris']
        assert location.to_dict() == {
            'name': 'Paris',
            'description': 'Capital of France',
            'latitude': PARIS.lat,
            'longitude': PARIS.lon,
            'confidence': 'medium',
            'sources': ['nominatim'],
            'raw_mentions': ['paris'],
        }


class TestExtractionResult:

    def test_to_response(self):
        result = ExtractionResult(locations=[], model_used='none', input_length=12, processing_time_ms=5)
        assert result.to_response() == {
            'success': True,
            'locations': [],
            'model_used': 'none',
            'input_length': 12,
            'processing_time_ms': 5,
        }

    def test_confidence_breakdown(self):
        candidate = RawCandidate("Paris", "d", "Paris")
        result = ExtractionResult(
            locations=[
                ResolvedLocation.from_candidate(candidate, GeoResolution(PARIS, Confidence.HIGH, ['google', 'nominatim'])),
                ResolvedLocation.from_candidate(candidate, GeoResolution.unresolved()),
            ],
            model_used='gemini-2.0-flash'
        )
        assert result.confidence_breakdown() == {'high': 1, 'medium': 0, 'low': 1}
        assert result.resolved_count == 1
