"""Tests for repository discovery"""
import os

import pytest

from katazuke.exceptions import ConfigError, DiscoveryError
from katazuke.services.scanner import Scanner, is_excluded, load_index


def make_fake_repo(path):
    """A directory the fake is_repo treats as a checkout."""
    (path / ".git").mkdir(parents=True)
    return path


def fake_is_repo(path):
    return os.path.isdir(os.path.join(path, ".git"))


@pytest.fixture
def scanner():
    return Scanner([".archive", "vendor"], is_repo=fake_is_repo)


class TestIsExcluded:
    def test_glob_patterns(self):
        assert is_excluded("vendor", ["vendor"])
        assert is_excluded("tmp-build", ["tmp-*"])
        assert not is_excluded("api", ["tmp-*", "vendor"])
        assert not is_excluded("api", [])


class TestLoadIndex:
    def test_missing(self, temp_dir):
        assert load_index(str(temp_dir)) == (None, False)

    def test_empty_file_is_valid(self, temp_dir):
        (temp_dir / ".katazuke").write_text("")
        index, exists = load_index(str(temp_dir))
        assert exists is True
        assert index.groups == [] and index.ignores == []

    def test_groups_and_ignores(self, temp_dir):
        (temp_dir / ".katazuke").write_text("groups:\n  - work\nignores:\n  - scratch\n")
        index, _ = load_index(str(temp_dir))
        assert index.groups == ["work"]
        assert index.ignores == ["scratch"]

    def test_unknown_key_rejected(self, temp_dir):
        (temp_dir / ".katazuke").write_text("groups: [work]\nrepos: [x]\n")
        with pytest.raises(ConfigError, match="unknown field 'repos'"):
            load_index(str(temp_dir))

    def test_invalid_yaml_rejected(self, temp_dir):
        (temp_dir / ".katazuke").write_text("groups: [work\n")
        with pytest.raises(ConfigError):
            load_index(str(temp_dir))

    def test_non_list_rejected(self, temp_dir):
        (temp_dir / ".katazuke").write_text("groups: work\n")
        with pytest.raises(ConfigError):
            load_index(str(temp_dir))


class TestScan:
    def test_empty_directory(self, scanner, projects_dir):
        assert scanner.scan(str(projects_dir)) == []

    def test_missing_root(self, scanner, temp_dir):
        with pytest.raises(DiscoveryError):
            scanner.scan(str(temp_dir / "missing"))

    def test_immediate_children_only(self, scanner, projects_dir):
        make_fake_repo(projects_dir / "api")
        make_fake_repo(projects_dir / "web")
        make_fake_repo(projects_dir / "notes" / "nested")
        (projects_dir / "file.txt").write_text("x")

        repos = scanner.scan(str(projects_dir))
        assert [os.path.basename(r) for r in repos] == ["api", "web"]

    def test_hidden_and_excluded_skipped(self, scanner, projects_dir):
        make_fake_repo(projects_dir / ".hidden")
        make_fake_repo(projects_dir / "vendor")
        make_fake_repo(projects_dir / ".archive")
        make_fake_repo(projects_dir / "api")

        assert [os.path.basename(r) for r in scanner.scan(str(projects_dir))] == ["api"]

    def test_groups_scanned_and_not_reported(self, scanner, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [work]\nignores: [scratch]\n")
        make_fake_repo(projects_dir / "work" / "billing")
        make_fake_repo(projects_dir / "work" / "auth")
        make_fake_repo(projects_dir / "scratch")
        make_fake_repo(projects_dir / "api")

        repos = scanner.scan(str(projects_dir))
        rel = sorted(os.path.relpath(r, projects_dir) for r in repos)
        assert rel == ["api", os.path.join("work", "auth"), os.path.join("work", "billing")]

    def test_group_that_is_also_ignored(self, scanner, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [work]\nignores: [work]\n")
        make_fake_repo(projects_dir / "work" / "billing")
        assert scanner.scan(str(projects_dir)) == []

    def test_hidden_group_not_scanned(self, scanner, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [.secret, work]\n")
        make_fake_repo(projects_dir / ".secret" / "inner")
        make_fake_repo(projects_dir / "work" / "billing")

        repos = scanner.scan(str(projects_dir))
        assert [os.path.relpath(r, projects_dir) for r in repos] == [os.path.join("work", "billing")]

    def test_missing_group_skipped(self, scanner, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [missing]\n")
        make_fake_repo(projects_dir / "api")
        assert [os.path.basename(r) for r in scanner.scan(str(projects_dir))] == ["api"]

    def test_nested_group_index(self, scanner, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [work]\n")
        (projects_dir / "work" / "team").mkdir(parents=True)
        (projects_dir / "work" / ".katazuke").write_text("groups: [team]\n")
        make_fake_repo(projects_dir / "work" / "team" / "svc")

        repos = scanner.scan(str(projects_dir))
        assert [os.path.basename(r) for r in repos] == ["svc"]

    def test_symlink_cycle_terminates(self, scanner, projects_dir):
        (projects_dir / "work").mkdir()
        make_fake_repo(projects_dir / "work" / "svc")
        os.symlink(projects_dir, projects_dir / "work" / "loop")
        (projects_dir / ".katazuke").write_text("groups: [work]\n")
        (projects_dir / "work" / ".katazuke").write_text("groups: [loop]\n")

        repos = scanner.scan(str(projects_dir))
        assert [os.path.basename(r) for r in repos] == ["svc"]

    def test_invalid_nested_index_aborts(self, scanner, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [work]\n")
        (projects_dir / "work").mkdir()
        (projects_dir / "work" / ".katazuke").write_text("bogus: true\n")
        with pytest.raises(ConfigError):
            scanner.scan(str(projects_dir))

    def test_real_git_repos(self, make_repo, projects_dir):
        make_repo(projects_dir / "real")
        (projects_dir / "plain").mkdir()
        repos = Scanner([]).scan(str(projects_dir))
        assert [os.path.basename(r) for r in repos] == ["real"]
