"""
Tests for configuration loading
"""

import pytest

from lotto645.combinations import SUM_RANGE_RECOMMENDED, GeneratorSettings
from lotto645.config import DEFAULT_CONFIG_PATH, EngineConfig, load_config, parse_range
from lotto645.scoring import ScoringWeights
from lotto645.validation import ValidationSettings


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv('LOTTO645_CONFIG', raising=False)
    monkeypatch.delenv('CACHE_TTL_SECONDS', raising=False)


class TestParseRange:
    def test_named(self):
        assert parse_range('wide') == (100, 180)
        assert parse_range(' Recommended ') == SUM_RANGE_RECOMMENDED

    def test_explicit(self):
        assert parse_range('110,170') == (110, 170)

    @pytest.mark.parametrize("value", ['abc', '170,110', '1,2,3'])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_range(value)


class TestLoadConfig:
    """Tests for load_config"""

    def test_repository_config_matches_defaults(self):
        config = load_config(DEFAULT_CONFIG_PATH)
        assert config == EngineConfig()

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(str(tmp_path / 'missing.ini'))
        assert config.scoring == ScoringWeights()
        assert config.generator == GeneratorSettings()
        assert config.validation == ValidationSettings()
        assert config.cache_ttl_seconds == 600

    def test_overrides(self, tmp_path):
        path = tmp_path / 'engine.ini'
        path.write_text(
            "[scoring]\n"
            "gap = 0.4\n"
            "recent_window = 30\n"
            "[generator]\n"
            "sum_range = recommended\n"
            "odd_range = 1,5\n"
            "[cache]\n"
            "ttl_seconds = 30\n"
        )
        config = load_config(str(path))
        assert config.scoring.gap == 0.4
        assert config.scoring.recent_window == 30
        assert config.scoring.recent == 0.20
        assert config.generator.sum_range == SUM_RANGE_RECOMMENDED
        assert config.generator.odd_range == (1, 5)
        assert config.validation == ValidationSettings()
        assert config.cache_ttl_seconds == 30.0

    def test_invalid_value_falls_back(self, tmp_path):
        path = tmp_path / 'engine.ini'
        path.write_text("[scoring]\ngap = lots\n")
        assert load_config(str(path)).scoring.gap == 0.25

    def test_invalid_cache_ttl_falls_back(self, tmp_path):
        path = tmp_path / 'engine.ini'
        path.write_text("[cache]\nttl_seconds = soon\n")
        assert load_config(str(path)).cache_ttl_seconds == 600

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / 'env.ini'
        path.write_text("[validation]\nwarmup = 10\n")
        monkeypatch.setenv('LOTTO645_CONFIG', str(path))
        assert load_config().validation.warmup == 10

    def test_env_cache_ttl(self, tmp_path, monkeypatch):
        monkeypatch.setenv('CACHE_TTL_SECONDS', '15')
        assert load_config(str(tmp_path / 'missing.ini')).cache_ttl_seconds == 15.0
