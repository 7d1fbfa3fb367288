"""Tests for configuration loading"""
from pathlib import Path

import pytest

from katazuke.config import Config, SyncConfig, config_path, expand_home, load_config
from katazuke.exceptions import ConfigError


@pytest.fixture
def config_file(temp_dir):
    path = temp_dir / "config.yaml"

    def write(text: str) -> Path:
        path.write_text(text)
        return path

    return write


class TestDefaults:
    def test_missing_file_gives_defaults(self, temp_dir, isolated_home):
        config = load_config(temp_dir / "absent.yaml", env={})
        assert config.projects_dir == str(isolated_home / "projects")
        assert config.stale_threshold_days == 30
        assert config.exclude_patterns == [".archive", "vendor"]
        assert config.github_token is None
        assert 1 <= config.workers <= 4
        assert config.sync == SyncConfig()

    def test_sync_defaults(self):
        sync = SyncConfig()
        assert sync.strategy == "rebase"
        assert sync.skip_dirty is False
        assert sync.auto_stash is True
        assert sync.switch_merged_branch is True

    def test_empty_file(self, config_file):
        config = load_config(config_file("   \n"), env={})
        assert config.stale_threshold_days == 30

    def test_default_location(self, isolated_home):
        assert config_path() == isolated_home / ".config" / "katazuke" / "config.yaml"

    def test_default_location_read(self, isolated_home):
        path = isolated_home / ".config" / "katazuke" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("stale_threshold_days: 12\n")
        assert load_config(env={}).stale_threshold_days == 12


class TestConfigFile:
    def test_values_read(self, config_file):
        path = config_file(
            "projects_dir: /srv/code\n"
            "stale_threshold_days: 60\n"
            "exclude_patterns: [tmp-*]\n"
            "workers: 8\n"
            "sync:\n"
            "  strategy: ff-only\n"
            "  auto_stash: false\n"
        )
        config = load_config(path, env={})
        assert config.projects_dir == "/srv/code"
        assert config.stale_threshold_days == 60
        assert config.exclude_patterns == ["tmp-*"]
        assert config.workers == 8
        assert config.sync.strategy == "ff-only"
        assert config.sync.auto_stash is False
        assert config.sync.skip_dirty is False

    def test_home_expanded(self, config_file, isolated_home):
        config = load_config(config_file("projects_dir: ~/code\n"), env={})
        assert config.projects_dir == str(isolated_home / "code")

    def test_unknown_keys_ignored(self, config_file):
        config = load_config(config_file("color: always\nsync:\n  verbose: true\n"), env={})
        assert config.stale_threshold_days == 30

    def test_invalid_yaml(self, config_file):
        with pytest.raises(ConfigError):
            load_config(config_file("sync: [unclosed\n"), env={})

    def test_not_a_mapping(self, config_file):
        with pytest.raises(ConfigError):
            load_config(config_file("- a\n- b\n"), env={})

    def test_invalid_strategy(self, config_file):
        with pytest.raises(ConfigError, match="invalid sync strategy 'squash'"):
            load_config(config_file("sync:\n  strategy: squash\n"), env={})

    @pytest.mark.parametrize("text", ["stale_threshold_days: 0\n", "workers: -1\n", "exclude_patterns: vendor\n"])
    def test_invalid_values(self, config_file, text):
        with pytest.raises(ConfigError):
            load_config(config_file(text), env={})


class TestEnvironment:
    def test_env_overrides_file(self, config_file):
        path = config_file("stale_threshold_days: 60\nsync:\n  strategy: merge\n")
        env = {
            "KATAZUKE_STALE_THRESHOLD_DAYS": "7",
            "KATAZUKE_SYNC_STRATEGY": "ff-only",
            "KATAZUKE_PROJECTS_DIR": "/work",
            "KATAZUKE_SYNC_SKIP_DIRTY": "true",
            "KATAZUKE_SYNC_AUTO_STASH": "0",
            "KATAZUKE_SYNC_SWITCH_MERGED_BRANCH": "F",
        }
        config = load_config(path, env=env)
        assert config.stale_threshold_days == 7
        assert config.sync.strategy == "ff-only"
        assert config.projects_dir == "/work"
        assert config.sync.skip_dirty is True
        assert config.sync.auto_stash is False
        assert config.sync.switch_merged_branch is False

    def test_malformed_values_ignored(self, config_file):
        path = config_file("stale_threshold_days: 60\n")
        env = {
            "KATAZUKE_STALE_THRESHOLD_DAYS": "soon",
            "KATAZUKE_WORKERS": "-3",
            "KATAZUKE_SYNC_AUTO_STASH": "maybe",
        }
        config = load_config(path, env=env)
        assert config.stale_threshold_days == 60
        assert config.sync.auto_stash is True

    def test_invalid_strategy_from_env(self, temp_dir):
        with pytest.raises(ConfigError):
            load_config(temp_dir / "absent.yaml", env={"KATAZUKE_SYNC_STRATEGY": "bogus"})

    def test_token_precedence(self, temp_dir):
        path = temp_dir / "absent.yaml"
        env = {"GH_TOKEN": "gh", "GITHUB_TOKEN": "github", "KATAZUKE_GITHUB_TOKEN": "katazuke"}
        assert load_config(path, env=env).github_token == "katazuke"
        del env["KATAZUKE_GITHUB_TOKEN"]
        assert load_config(path, env=env).github_token == "github"
        del env["GITHUB_TOKEN"]
        assert load_config(path, env=env).github_token == "gh"

    def test_file_token_only_replaced_by_katazuke_token(self, config_file):
        path = config_file("github_token: from-file\n")
        assert load_config(path, env={"GITHUB_TOKEN": "env"}).github_token == "from-file"
        assert load_config(path, env={"KATAZUKE_GITHUB_TOKEN": "env"}).github_token == "env"

    def test_token_redacted(self, temp_dir):
        config = load_config(temp_dir / "absent.yaml", env={"GITHUB_TOKEN": "secret"})
        assert config.to_dict()["github_token"] == "***"


class TestWorkersMigration:
    def test_sync_workers_promoted(self, config_file):
        assert load_config(config_file("sync:\n  workers: 6\n"), env={}).workers == 6

    def test_top_level_workers_win(self, config_file):
        assert load_config(config_file("workers: 2\nsync:\n  workers: 6\n"), env={}).workers == 2

    def test_env_applied_after_migration(self, config_file):
        path = config_file("sync:\n  workers: 6\n")
        assert load_config(path, env={"KATAZUKE_SYNC_WORKERS": "3"}).workers == 3
        assert load_config(path, env={"KATAZUKE_WORKERS": "5", "KATAZUKE_SYNC_WORKERS": "3"}).workers == 5


class TestHelpers:
    def test_expand_home(self, isolated_home):
        assert expand_home("~/projects") == str(isolated_home / "projects")
        assert expand_home("/abs/path") == "/abs/path"
        assert expand_home("~other/x") == "~other/x"
