"""Tests for GitOperations against real repositories"""
from datetime import datetime, timezone

import pytest

from conftest import OLD_DATE, commit_file
from katazuke.exceptions import GitOperationError
from katazuke.services.git.operations import GitOperations


@pytest.fixture
def ops():
    return GitOperations()


class TestRepoDetection:
    def test_is_repo_true(self, ops, git_repo):
        assert ops.is_repo(git_repo.working_dir) is True

    def test_is_repo_false_for_plain_dir(self, ops, temp_dir):
        plain = temp_dir / "plain"
        plain.mkdir()
        assert ops.is_repo(str(plain)) is False

    def test_is_repo_false_for_missing_path(self, ops, temp_dir):
        assert ops.is_repo(str(temp_dir / "missing")) is False

    def test_run_outside_repo_raises(self, ops, temp_dir):
        with pytest.raises(GitOperationError):
            ops.current_branch(str(temp_dir / "missing"))


class TestBranches:
    def test_current_branch(self, ops, git_repo):
        assert ops.current_branch(git_repo.working_dir) == "main"

    def test_current_branch_detached(self, ops, git_repo):
        git_repo.git.checkout("--detach")
        assert ops.current_branch(git_repo.working_dir) == ""

    def test_default_branch_falls_back_to_main(self, ops, git_repo):
        assert ops.default_branch(git_repo.working_dir) == "main"

    def test_default_branch_falls_back_to_master(self, ops, git_repo):
        git_repo.git.branch("-M", "master")
        assert ops.default_branch(git_repo.working_dir) == "master"

    def test_default_branch_unresolvable(self, ops, git_repo):
        git_repo.git.branch("-M", "trunk")
        with pytest.raises(GitOperationError):
            ops.default_branch(git_repo.working_dir)

    def test_default_branch_from_origin_head(self, ops, make_clone, projects_dir):
        clone, upstream = make_clone(projects_dir / "api")
        assert ops.default_branch(clone.working_dir) == "main"

    def test_list_and_merged_branches(self, ops, git_repo):
        path = git_repo.working_dir
        git_repo.git.checkout("-b", "feature/done")
        commit_file(git_repo, "done.txt")
        git_repo.git.checkout("main")
        git_repo.git.merge("feature/done", "--no-ff", "-m", "Merge feature/done")
        git_repo.git.checkout("-b", "feature/open")
        commit_file(git_repo, "open.txt")
        git_repo.git.checkout("main")

        assert sorted(ops.list_branches(path)) == ["feature/done", "feature/open", "main"]
        merged = ops.merged_branches(path, "main")
        assert "feature/done" in merged
        assert "feature/open" not in merged
        assert ops.is_merged(path, "feature/done", "main") is True
        assert ops.is_merged(path, "feature/open", "main") is False

    def test_list_branches_skips_detached_pseudo_entry(self, ops, git_repo):
        git_repo.git.checkout("--detach")
        assert ops.list_branches(git_repo.working_dir) == ["main"]

    def test_delete_local_branch(self, ops, git_repo):
        git_repo.git.branch("old")
        ops.delete_local_branch(git_repo.working_dir, "old")
        assert "old" not in ops.list_branches(git_repo.working_dir)

    def test_delete_unmerged_branch_needs_force(self, ops, git_repo):
        git_repo.git.checkout("-b", "wip")
        commit_file(git_repo, "wip.txt")
        git_repo.git.checkout("main")

        with pytest.raises(GitOperationError) as exc_info:
            ops.delete_local_branch(git_repo.working_dir, "wip")
        assert exc_info.value.branch == "wip"

        ops.delete_local_branch(git_repo.working_dir, "wip", force=True)
        assert "wip" not in ops.list_branches(git_repo.working_dir)


class TestCommits:
    def test_commit_date_and_subject(self, ops, git_repo):
        git_repo.git.checkout("-b", "old")
        commit_file(git_repo, "old.txt", message="Ancient work", date=OLD_DATE)

        date = ops.commit_date(git_repo.working_dir, "old")
        assert date == datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert ops.commit_subject(git_repo.working_dir, "old") == "Ancient work"

    def test_commit_authors_unique(self, ops, git_repo):
        git_repo.git.checkout("-b", "shared")
        commit_file(git_repo, "a.txt")
        commit_file(git_repo, "b.txt", author="Other <other@example.com>")
        commit_file(git_repo, "c.txt")

        authors = ops.commit_authors(git_repo.working_dir, "shared", "main")
        assert sorted(authors) == ["other@example.com", "test@example.com"]

    def test_commits_ahead_behind(self, ops, git_repo):
        git_repo.git.checkout("-b", "topic")
        commit_file(git_repo, "t1.txt")
        commit_file(git_repo, "t2.txt")
        git_repo.git.checkout("main")
        commit_file(git_repo, "m1.txt")

        assert ops.commits_ahead_behind(git_repo.working_dir, "topic", "main") == (2, 1)
        assert ops.commit_count(git_repo.working_dir, "main..topic") == 2

    def test_rev_parse_and_tag(self, ops, git_repo):
        sha = git_repo.head.commit.hexsha
        assert ops.rev_parse(git_repo.working_dir, "main") == sha

        ops.create_tag(git_repo.working_dir, "archive/main", "main")
        assert ops.rev_parse(git_repo.working_dir, "archive/main") == sha


class TestRemotesAndConfig:
    def test_remote_url(self, ops, git_repo):
        assert ops.remote_url(git_repo.working_dir) == "git@github.com:test/test-repo.git"
        assert ops.has_remote(git_repo.working_dir) is True
        assert ops.has_remote(git_repo.working_dir, "upstream") is False

    def test_config_value(self, ops, git_repo):
        assert ops.config_value(git_repo.working_dir, "user.email") == "test@example.com"
        assert ops.config_value(git_repo.working_dir, "katazuke.missing") == ""

    def test_remote_branch_and_upstream(self, ops, make_clone, projects_dir):
        clone, _ = make_clone(projects_dir / "api")
        path = clone.working_dir
        clone.git.checkout("-b", "feature/pushed")
        commit_file(clone, "p.txt")
        clone.git.push("-u", "origin", "feature/pushed")
        clone.git.checkout("-b", "feature/local")

        assert ops.has_remote_branch(path, "feature/pushed") is True
        assert ops.has_remote_branch(path, "feature/local") is False
        assert ops.has_upstream(path, "feature/pushed") is True
        assert ops.has_upstream(path, "feature/local") is False

    def test_delete_remote_branch(self, ops, make_clone, projects_dir):
        clone, _ = make_clone(projects_dir / "api")
        clone.git.push("origin", "main:feature/gone")
        ops.fetch(clone.working_dir)
        assert ops.has_remote_branch(clone.working_dir, "feature/gone") is True

        ops.delete_remote_branch(clone.working_dir, "feature/gone")
        assert ops.has_remote_branch(clone.working_dir, "feature/gone") is False

        with pytest.raises(GitOperationError) as exc_info:
            ops.delete_remote_branch(clone.working_dir, "feature/gone")
        assert "remote ref does not exist" in str(exc_info.value)


class TestWorkingTree:
    def test_is_clean(self, ops, git_repo):
        assert ops.is_clean(git_repo.working_dir) is True
        with open(f"{git_repo.working_dir}/README.md", "a") as f:
            f.write("edit\n")
        assert ops.is_clean(git_repo.working_dir) is False

    def test_untracked_file_is_dirty(self, ops, git_repo):
        with open(f"{git_repo.working_dir}/new.txt", "w") as f:
            f.write("x")
        assert ops.is_clean(git_repo.working_dir) is False

    def test_stash_push_and_pop(self, ops, git_repo):
        path = git_repo.working_dir
        with open(f"{path}/README.md", "a") as f:
            f.write("local change\n")

        assert ops.stash_push(path, "katazuke: test") is True
        assert ops.is_clean(path) is True
        ops.stash_pop(path)
        assert ops.is_clean(path) is False

    def test_stash_create_leaves_tree_and_stash_list(self, ops, git_repo):
        path = git_repo.working_dir
        with open(f"{path}/README.md", "a") as f:
            f.write("local change\n")

        snapshot = ops.stash_create(path)
        assert len(snapshot) == 40
        assert ops.is_clean(path) is False
        assert git_repo.git.stash("list") == ""
        assert "local change" in git_repo.git.show(f"{snapshot}:README.md")

    def test_stash_create_on_clean_tree(self, ops, git_repo):
        assert ops.stash_create(git_repo.working_dir) == ""

    def test_stash_push_with_nothing_to_stash(self, ops, git_repo):
        assert ops.stash_push(git_repo.working_dir, "katazuke: test") is False

    def test_unknown_pull_strategy(self, ops, git_repo):
        with pytest.raises(GitOperationError):
            ops.pull(git_repo.working_dir, "octopus")

    def test_checkout(self, ops, git_repo):
        git_repo.git.branch("other")
        ops.checkout(git_repo.working_dir, "other")
        assert ops.current_branch(git_repo.working_dir) == "other"


class TestMergeTree:
    def _diverge(self, repo, ours: str, theirs: str):
        repo.git.checkout("-b", "theirs")
        commit_file(repo, "shared.txt", theirs)
        repo.git.checkout("main")
        commit_file(repo, "shared.txt", ours)

    def test_conflict_detected(self, ops, git_repo):
        self._diverge(git_repo, "ours\n", "theirs\n")
        path = git_repo.working_dir
        base = ops.merge_base(path, "main", "theirs")
        assert ops.merge_tree_has_conflicts(path, base, "main", "theirs") is True

    def test_no_conflict(self, ops, git_repo):
        git_repo.git.checkout("-b", "theirs")
        commit_file(git_repo, "theirs.txt")
        git_repo.git.checkout("main")
        commit_file(git_repo, "ours.txt")
        path = git_repo.working_dir
        base = ops.merge_base(path, "main", "theirs")
        assert ops.merge_tree_has_conflicts(path, base, "main", "theirs") is False
