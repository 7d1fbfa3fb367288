"""Tests for the non-git directory audit"""
import os
from collections import Counter

import pytest

from katazuke.formatters.size import format_size
from katazuke.models.repo import NonRepoDir
from katazuke.services.audit_service import AuditService, build_summary, default_quarantine_path, inspect_dir


def fake_is_repo(path):
    return os.path.isdir(os.path.join(path, ".git"))


def write(path, content="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.fixture
def service():
    return AuditService(is_repo=fake_is_repo)


class TestFormatSize:
    @pytest.mark.parametrize(
        "size, expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1.0 MB"),
            (5 * 1024 ** 3, "5.0 GB"),
        ],
    )
    def test_units(self, size, expected):
        assert format_size(size) == expected


class TestBuildSummary:
    def test_empty(self):
        assert build_summary(Counter()) == "empty"

    def test_top_three_and_others(self):
        counts = Counter({".py": 12, ".md": 5, "(no ext)": 3, ".txt": 1, ".json": 1})
        assert build_summary(counts) == "12 .py, 5 .md, 3 (no ext), 2 others"

    def test_ties_broken_by_name(self):
        counts = Counter({".txt": 2, ".csv": 2, ".md": 2})
        assert build_summary(counts) == "2 .csv, 2 .md, 2 .txt"


class TestInspectDir:
    def test_walks_recursively(self, temp_dir):
        root = temp_dir / "notes"
        write(root / "a.py", "12345")
        write(root / "deep" / "b.py", "123")
        write(root / "deep" / "Makefile", "1")
        write(root / "deep" / "README.MD", "")

        info = inspect_dir(str(root))
        assert info.name == "notes"
        assert info.file_count == 4
        assert info.size == 9
        assert info.summary == "2 .py, 1 (no ext), 1 .md"
        assert info.last_modified is not None

    def test_empty_directory(self, temp_dir):
        root = temp_dir / "empty"
        root.mkdir()
        info = inspect_dir(str(root))
        assert (info.size, info.file_count, info.last_modified, info.summary) == (0, 0, None, "empty")


class TestFindNonRepoDirs:
    def test_repos_hidden_and_excluded_skipped(self, service, projects_dir):
        (projects_dir / "api" / ".git").mkdir(parents=True)
        write(projects_dir / "scratch" / "todo.txt")
        write(projects_dir / "downloads" / "file.zip")
        write(projects_dir / ".cache" / "x")
        write(projects_dir / "vendor" / "lib.c")
        write(projects_dir / "loose.txt")

        found = service.find_non_repo_dirs(str(projects_dir), ["vendor"], workers=2)
        assert [d.name for d in found] == ["downloads", "scratch"]

    def test_index_groups_and_ignores_skipped(self, service, projects_dir):
        (projects_dir / ".katazuke").write_text("groups: [work]\nignores: [keep-me]\n")
        write(projects_dir / "work" / "readme.txt")
        write(projects_dir / "keep-me" / "data.csv")
        write(projects_dir / "junk" / "data.csv")

        found = service.find_non_repo_dirs(str(projects_dir), [], workers=1)
        assert [d.name for d in found] == ["junk"]

    def test_real_git_detection(self, make_repo, projects_dir):
        make_repo(projects_dir / "real")
        write(projects_dir / "plain" / "a.txt")
        found = AuditService().find_non_repo_dirs(str(projects_dir), [], workers=1)
        assert [d.name for d in found] == ["plain"]


class TestActions:
    def test_remove(self, service, projects_dir):
        write(projects_dir / "junk" / "a" / "b.txt")
        service.remove(NonRepoDir(path=str(projects_dir / "junk"), name="junk"))
        assert not (projects_dir / "junk").exists()

    def test_quarantine_moves_directory(self, service, projects_dir, temp_dir):
        write(projects_dir / "junk" / "b.txt", "keep")
        quarantine = temp_dir / "q"

        dest = service.quarantine(NonRepoDir(path=str(projects_dir / "junk"), name="junk"), quarantine)

        assert dest == quarantine / "junk"
        assert (dest / "b.txt").read_text() == "keep"
        assert not (projects_dir / "junk").exists()

    def test_quarantine_refuses_to_overwrite(self, service, projects_dir, temp_dir):
        write(projects_dir / "junk" / "b.txt")
        write(temp_dir / "q" / "junk" / "older.txt")

        with pytest.raises(FileExistsError):
            service.quarantine(NonRepoDir(path=str(projects_dir / "junk"), name="junk"), temp_dir / "q")
        assert (projects_dir / "junk" / "b.txt").exists()

    def test_default_quarantine_location(self, isolated_home):
        assert default_quarantine_path() == isolated_home / "katazuke-quarantine"
