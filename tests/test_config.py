"""
설정 객체 테스트
"""

import dataclasses

import pytest

from zkthumb.config import AppConfig, ThumbnailConfig
from zkthumb.errors import ConfigError


class TestThumbnailConfig:
    def test_defaults(self):
        config = ThumbnailConfig()
        assert (config.ratio, config.position) == (10, 5)
        assert config.source == "demo.jpg"
        assert config.output == "test.png"
        assert config.capacity == 100

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ThumbnailConfig().ratio = 3

    @pytest.mark.parametrize("ratio", [0, -1, 2.5, True])
    def test_bad_ratio(self, ratio):
        with pytest.raises(ConfigError):
            ThumbnailConfig(ratio=ratio, position=0)

    @pytest.mark.parametrize("position", [-1, 4, 100])
    def test_bad_position(self, position):
        with pytest.raises(ConfigError):
            ThumbnailConfig(ratio=2, position=position)

    def test_last_position(self):
        assert ThumbnailConfig(ratio=2, position=3).position == 3

    def test_bad_workers(self):
        with pytest.raises(ConfigError):
            ThumbnailConfig(workers=0)

    def test_bad_seed(self):
        with pytest.raises(ConfigError):
            ThumbnailConfig(seed="abc")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            ThumbnailConfig(ratio=0)


class TestAppConfig:
    def test_defaults(self):
        config = AppConfig.from_env({})
        assert config.store_path == "certificates.json"
        assert config.secret_key == "key"

    def test_from_env(self):
        config = AppConfig.from_env({
            "ZKTHUMB_STORE": "/tmp/certs",
            "ZKTHUMB_SECRET_KEY": "s3cret",
            "ZKTHUMB_MAX_UPLOAD": "1024",
        })
        assert config.store_path == "/tmp/certs"
        assert config.secret_key == "s3cret"
        assert config.max_upload_bytes == 1024

    def test_bad_upload_limit(self):
        with pytest.raises(ConfigError):
            AppConfig.from_env({"ZKTHUMB_MAX_UPLOAD": "lots"})
