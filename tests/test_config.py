"""Unit tests for the configuration document (cza.config).

Tests cover:
- Section defaults
- Key-path get/set/list, boolean parsing, unknown keys
- reset
- save/load round-trip, missing file, corrupt file
- config_path and the CZA_CONFIG_DIR override
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cza.config import (
    NOT_SET,
    Config,
    ConfigParseError,
    ConfigWriteError,
    InvalidValueError,
    UnknownKeyError,
    config_path,
)

pytestmark = pytest.mark.unit

ALL_KEYS = [
    "user.author",
    "user.email",
    "user.git_init",
    "user.default_template",
    "development.verbose",
    "development.color",
    "development.confirm_overwrite",
    "post_generation.auto_install_deps",
    "post_generation.auto_setup_hooks",
    "post_generation.open_editor",
]


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_user_defaults(self):
        config = Config()
        assert config.user.author is None
        assert config.user.email is None
        assert config.user.git_init is True
        assert config.user.default_template is None

    def test_development_defaults(self):
        config = Config()
        assert config.development.verbose is False
        assert config.development.color is True
        assert config.development.confirm_overwrite is True

    def test_post_generation_defaults(self):
        config = Config()
        assert config.post_generation.auto_install_deps is True
        assert config.post_generation.auto_setup_hooks is True
        assert config.post_generation.open_editor is None

    def test_key_paths_order(self):
        assert Config.key_paths() == ALL_KEYS


# ---------------------------------------------------------------------------
# get / set
# ---------------------------------------------------------------------------


class TestGetSet:
    def test_get_unset_optional_is_none(self):
        assert Config().get("user.author") is None

    def test_get_bool_renders_literal(self):
        config = Config()
        assert config.get("user.git_init") == "true"
        assert config.get("development.verbose") == "false"

    @pytest.mark.parametrize(
        "key,value",
        [
            ("user.author", "Ada Lovelace"),
            ("user.email", "ada@example.com"),
            ("user.default_template", "noir-vite"),
            ("post_generation.open_editor", "code"),
            ("user.git_init", "false"),
            ("development.verbose", "true"),
            ("development.confirm_overwrite", "false"),
            ("post_generation.auto_setup_hooks", "false"),
        ],
    )
    def test_set_then_get_round_trip(self, key, value):
        config = Config()
        config.set(key, value)
        assert config.get(key) == value

    def test_set_bool_stores_native_type(self):
        config = Config()
        config.set("user.git_init", "false")
        assert config.user.git_init is False

    @pytest.mark.parametrize("value", ["yes", "1", "True", "FALSE", ""])
    def test_set_bool_rejects_non_literal(self, value):
        config = Config()
        with pytest.raises(InvalidValueError, match="Invalid boolean value for user.git_init"):
            config.set("user.git_init", value)
        assert config.user.git_init is True

    @pytest.mark.parametrize(
        "key", ["user.name", "nope.author", "user", "", "development.colour", "user.author.x"]
    )
    def test_unknown_key_rejected(self, key):
        config = Config()
        with pytest.raises(UnknownKeyError, match="Unknown configuration key"):
            config.set(key, "value")
        with pytest.raises(UnknownKeyError):
            config.get(key)

    def test_unknown_key_error_has_hint(self):
        with pytest.raises(UnknownKeyError) as exc_info:
            Config().get("user.name")
        assert exc_info.value.key == "user.name"
        assert "cza config list" in exc_info.value.hint


# ---------------------------------------------------------------------------
# list / reset
# ---------------------------------------------------------------------------


class TestListReset:
    def test_list_fixed_order_with_not_set(self):
        pairs = Config().list()
        assert [key for key, _ in pairs] == ALL_KEYS
        values = dict(pairs)
        assert values["user.author"] == NOT_SET
        assert values["post_generation.open_editor"] == NOT_SET
        assert values["user.git_init"] == "true"

    def test_list_shows_set_values(self):
        config = Config()
        config.set("user.author", "Ada")
        assert dict(config.list())["user.author"] == "Ada"

    def test_reset_restores_defaults(self):
        config = Config()
        for key in ("user.author", "user.email", "post_generation.open_editor"):
            config.set(key, "x")
        config.set("user.git_init", "false")
        config.set("development.color", "false")
        config.reset()
        assert config == Config()


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_config_path_uses_override(self, isolated_config_dir):
        assert config_path() == isolated_config_dir / "config.json"

    def test_load_missing_file_returns_defaults(self, tmp_path):
        assert Config.load(tmp_path / "missing.json") == Config()

    def test_save_creates_parent_dirs(self, tmp_path):
        target = tmp_path / "a" / "b" / "config.json"
        assert Config().save(target) == target
        assert target.exists()

    def test_save_default_location(self, isolated_config_dir):
        path = Config().save()
        assert path == isolated_config_dir / "config.json"
        assert path.exists()

    def test_save_omits_unset_optionals(self, tmp_path):
        target = tmp_path / "config.json"
        Config().save(target)
        data = json.loads(target.read_text())
        assert "author" not in data["user"]
        assert data["user"]["git_init"] is True

    def test_save_load_round_trip(self, tmp_path):
        target = tmp_path / "config.json"
        config = Config()
        config.set("user.author", "Ada")
        config.set("post_generation.open_editor", "code --wait")
        config.set("development.verbose", "true")
        config.save(target)

        loaded = Config.load(target)
        assert loaded == config
        assert loaded.get("post_generation.open_editor") == "code --wait"

    def test_partial_file_fills_defaults(self, tmp_path):
        target = tmp_path / "config.json"
        target.write_text(json.dumps({"user": {"author": "Ada"}}))
        loaded = Config.load(target)
        assert loaded.user.author == "Ada"
        assert loaded.user.git_init is True
        assert loaded.post_generation == Config().post_generation

    @pytest.mark.parametrize(
        "content",
        ["{not json", json.dumps({"user": {"git_init": "maybe"}}), "[]"],
    )
    def test_corrupt_file_raises(self, tmp_path, content):
        target = tmp_path / "config.json"
        target.write_text(content)
        with pytest.raises(ConfigParseError) as exc_info:
            Config.load(target)
        assert "cza config reset" in exc_info.value.hint

    def test_non_utf8_file_raises(self, tmp_path):
        target = tmp_path / "config.json"
        target.write_bytes(b"\xff\xfe{bad")
        with pytest.raises(ConfigParseError, match="not valid UTF-8"):
            Config.load(target)

    def test_save_failure_raises_write_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(ConfigWriteError, match="Failed to write config file"):
            Config().save(blocker / "config.json")

    def test_save_does_not_happen_implicitly(self, isolated_config_dir):
        config = Config()
        config.set("user.author", "Ada")
        assert not (isolated_config_dir / "config.json").exists()
        assert isinstance(config_path(), Path)
