"""
命令行入口测试
"""

import io
import json

import pytest

from geotext_extraction import cli
from geotext_extraction.core.exceptions import ConfigException
from geotext_extraction.experiment.runner import main as runner_main
from geotext_extraction.extraction import ExtractionPipeline, LocationExtractor, StagedExtractor
from geotext_extraction.geocoding import GeoConfidenceEngine

from conftest import (
    FakeGeocodeProvider,
    FakeLLMClient,
    LONDON_GOOGLE,
    LONDON_NOMINATIM,
    StubConfigLoader,
    location_item,
    locations_json
)


@pytest.fixture
def config(temp_output_dir):
    return StubConfigLoader({'output.output_dir': str(temp_output_dir)})


@pytest.fixture
def fake_pipeline(monkeypatch, config):
    def from_config(config_loader=None, transport=None):
        staged = StagedExtractor([
            LocationExtractor(FakeLLMClient("gemini-2.0-flash", [locations_json(location_item("London"))]))
        ])
        engine = GeoConfidenceEngine([
            FakeGeocodeProvider('google', LONDON_GOOGLE),
            FakeGeocodeProvider('nominatim', LONDON_NOMINATIM),
        ])
        return ExtractionPipeline(staged, engine, config_loader=config_loader)

    monkeypatch.setattr(cli, 'get_config_loader', lambda path=None: config)
    monkeypatch.setattr(cli, 'setup_logging', lambda *args, **kwargs: None)
    monkeypatch.setattr(cli.ExtractionPipeline, 'from_config', from_config)


def test_extract_text(fake_pipeline, capsys):
    assert cli.main(["Weekend in London"]) == cli.EXIT_OK

    response = json.loads(capsys.readouterr().out)
    assert response['success'] is True
    assert response['model_used'] == "gemini-2.0-flash"
    assert response['input_length'] == len("Weekend in London")
    assert response['locations'][0]['confidence'] == 'high'


def test_extract_from_stdin(fake_pipeline, capsys, monkeypatch):
    monkeypatch.setattr('sys.stdin', io.StringIO("London calling"))

    assert cli.main([]) == cli.EXIT_OK
    assert json.loads(capsys.readouterr().out)['input_length'] == len("London calling")


def test_extract_file_and_export(fake_pipeline, capsys, tmp_path, temp_output_dir):
    path = tmp_path / "notes.txt"
    path.write_text("London", encoding='utf-8')

    assert cli.main(["--file", str(path), "--format", "csv", "json"]) == cli.EXIT_OK

    assert json.loads(capsys.readouterr().out)['locations'][0]['name'] == "London"
    assert len(list(temp_output_dir.glob("locations_*.csv"))) == 1
    assert len(list(temp_output_dir.glob("locations_*.json"))) == 1


def test_invalid_input(fake_pipeline, capsys):
    assert cli.main([""]) == cli.EXIT_INPUT_ERROR

    error = json.loads(capsys.readouterr().err)
    assert error['success'] is False
    assert 'text' in error['error']


def test_missing_file(fake_pipeline, capsys, tmp_path):
    assert cli.main(["--file", str(tmp_path / "missing.txt")]) == cli.EXIT_INPUT_ERROR
    assert json.loads(capsys.readouterr().err)['success'] is False


def test_info(fake_pipeline, capsys):
    assert cli.main(["--info"]) == cli.EXIT_OK

    info = json.loads(capsys.readouterr().out)
    assert info['name'] == 'GeoText API'
    assert info['extraction_chain'] == ["gemini-2.0-flash"]


def test_config_error(monkeypatch, config):
    def broken(config_loader=None, transport=None):
        raise ConfigException("At most 2 geocoding providers are supported")

    monkeypatch.setattr(cli, 'get_config_loader', lambda path=None: config)
    monkeypatch.setattr(cli, 'setup_logging', lambda *args, **kwargs: None)
    monkeypatch.setattr(cli.ExtractionPipeline, 'from_config', broken)

    assert cli.main(["London"]) == cli.EXIT_CONFIG_ERROR


def test_missing_config_file(capsys, tmp_path):
    assert cli.main(["--config", str(tmp_path / "absent.yaml"), "London"]) == cli.EXIT_CONFIG_ERROR
    assert 'absent.yaml' in json.loads(capsys.readouterr().err)['error']


def test_experiment_missing_config_file(tmp_path):
    assert runner_main(["--config", str(tmp_path / "absent.yaml"), "--no-save"]) == 1
