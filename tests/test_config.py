"""config module tests"""
import os
import json
import pytest
from dataclasses import FrozenInstanceError
from fluxcors.config import (
    Config,
    load_config,
    get_config,
    reset_config,
    options_from_config,
    _load_config_file,
    _load_env_file,
)


class TestConfig:
    """Config loading and priority"""

    def test_config_defaults(self):
        """Default values"""
        cfg = Config()
        assert cfg.cors_allowed_origins == ""
        assert cfg.cors_allowed_methods == ""
        assert cfg.cors_allowed_headers == ""
        assert cfg.cors_exposed_headers == ""
        assert cfg.cors_allow_credentials is False
        assert cfg.cors_max_age == 0
        assert cfg.cors_options_passthrough is False
        assert cfg.cors_debug is False
        assert cfg.server_host == "127.0.0.1"
        assert cfg.server_port == 8080
        assert cfg.log_level == "INFO"
        assert cfg.log_format == "text"
        assert cfg.log_file == ""
        assert cfg.log_max_bytes == 10_485_760
        assert cfg.log_backup_count == 5

    def test_config_is_frozen(self):
        cfg = Config()
        with pytest.raises(FrozenInstanceError):
            cfg.cors_max_age = 10

    def test_load_config_defaults_only(self, clean_env, tmp_path):
        """No env, no .env, no config.json -> defaults"""
        cfg = load_config(str(tmp_path / "missing.json"), str(tmp_path / "missing.env"))
        assert cfg == Config()

    def test_config_json(self, clean_env, tmp_path):
        """config.json values are applied, lists accepted"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "cors_allowed_origins": ["http://a.com", "http://*.b.com"],
            "cors_allow_credentials": True,
            "cors_max_age": 600,
        }))
        cfg = load_config(str(path), None)
        assert cfg.cors_allowed_origins == "http://a.com, http://*.b.com"
        assert cfg.cors_allow_credentials is True
        assert cfg.cors_max_age == 600

    def test_env_overrides_dotenv_and_json(self, clean_env, tmp_path):
        """environment > .env > config.json"""
        json_path = tmp_path / "config.json"
        json_path.write_text(json.dumps({"cors_max_age": 10, "server_port": 9000, "log_level": "ERROR"}))
        env_path = tmp_path / ".env"
        env_path.write_text("CORS_MAX_AGE=20\nSERVER_PORT=9100\n")
        clean_env.setenv("CORS_MAX_AGE", "30")

        cfg = load_config(str(json_path), str(env_path))
        assert cfg.cors_max_age == 30
        assert cfg.server_port == 9100
        assert cfg.log_level == "ERROR"

    def test_dotenv_does_not_touch_environ(self, clean_env, tmp_path):
        env_path = tmp_path / ".env"
        env_path.write_text("CORS_DEBUG=true\n")
        cfg = load_config(str(tmp_path / "none.json"), str(env_path))
        assert cfg.cors_debug is True
        assert "CORS_DEBUG" not in os.environ

    def test_invalid_value_ignored(self, clean_env, tmp_path):
        """Unconvertible values keep the default"""
        clean_env.setenv("CORS_MAX_AGE", "not-a-number")
        cfg = load_config(str(tmp_path / "none.json"), None)
        assert cfg.cors_max_age == 0

    def test_clamping(self, clean_env, tmp_path):
        clean_env.setenv("CORS_MAX_AGE", "999999")
        clean_env.setenv("SERVER_PORT", "-1")
        cfg = load_config(str(tmp_path / "none.json"), None)
        assert cfg.cors_max_age == 86400
        assert cfg.server_port == 0

    def test_bool_parsing(self, clean_env, tmp_path):
        clean_env.setenv("CORS_ALLOW_CREDENTIALS", "yes")
        clean_env.setenv("CORS_OPTIONS_PASSTHROUGH", "0")
        cfg = load_config(str(tmp_path / "none.json"), None)
        assert cfg.cors_allow_credentials is True
        assert cfg.cors_options_passthrough is False

    def test_invalid_json_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert _load_config_file(str(path)) == {}

    def test_json_not_object_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert _load_config_file(str(path)) == {}

    def test_env_file_missing(self, tmp_path):
        assert _load_env_file(str(tmp_path / "nope.env")) == {}
        assert _load_env_file(None) == {}

    def test_get_config_singleton(self, clean_env, tmp_path):
        path = str(tmp_path / "none.json")
        first = get_config(path)
        assert get_config(path) is first
        reset_config()
        assert get_config(path) is not first


class TestOptionsFromConfig:
    def test_defaults_give_empty_lists(self):
        opts = options_from_config(Config())
        assert opts.allowed_origins == []
        assert opts.allowed_methods == []
        assert opts.allowed_headers == []
        assert opts.exposed_headers == []

    def test_splits_and_trims(self):
        cfg = Config(
            cors_allowed_origins=" http://a.com , ,http://*.b.com ",
            cors_allowed_methods="get,put",
            cors_allowed_headers="*",
            cors_exposed_headers="X-Id, X-Trace",
            cors_allow_credentials=True,
            cors_max_age=60,
            cors_options_passthrough=True,
            cors_debug=True,
        )
        opts = options_from_config(cfg)
        assert opts.allowed_origins == ["http://a.com", "http://*.b.com"]
        assert opts.allowed_methods == ["get", "put"]
        assert opts.allowed_headers == ["*"]
        assert opts.exposed_headers == ["X-Id", "X-Trace"]
        assert opts.allow_credentials is True
        assert opts.max_age == 60
        assert opts.options_passthrough is True
        assert opts.debug is True
