"""End-to-end version computation against real git histories."""

import pytest

from patchdepth.core.errors import DeepenLimitReached, ExtendFailed, NotACommit
from patchdepth.core.models import PatchConfig
from patchdepth.history.git import GitHistorySource
from patchdepth.operations.engine import compute_for_config, compute_version_patch

from conftest import VERSION_FILE


def compute(repo, origin="HEAD", deepen_by=50, max_deepen=None):
    source = GitHistorySource(repo.path)
    return compute_version_patch(source, origin, VERSION_FILE, deepen_by, max_deepen=max_deepen)


class TestFullClone:
    def test_linear(self, git_repo):
        git_repo.linear("1.1", "1.1", "1.2", "1.2", "1.2", "1.2")
        result = compute(git_repo)
        assert result.version == "1.2.3"
        assert result.deepen_count == 0

    def test_older_commit(self, git_repo):
        ids = git_repo.linear("1.1", "1.2", "1.2", "1.2")
        assert compute(git_repo, origin=ids[2]).version == "1.2.1"

    def test_unrelated_commits_count(self, git_repo):
        git_repo.linear("2.0")
        (git_repo.path / "src.txt").write_text("code", encoding="utf-8")
        git_repo.commit("2.0", "code change")
        assert compute(git_repo).version == "2.0.1"

    def test_merge_takes_longest_side(self, git_repo):
        git_repo.commit("1.1", "old")
        git_repo.commit("1.2", "base")
        main = git_repo.git("rev-parse", "--abbrev-ref", "HEAD")
        git_repo.git("checkout", "-q", "-b", "feature")
        git_repo.commit("1.2", "f1")
        git_repo.git("checkout", "-q", main)
        git_repo.commit("1.2", "m1")
        git_repo.commit("1.2", "m2")
        git_repo.git("merge", "-q", "--no-ff", "-m", "merge", "feature")
        # merge -> m2 -> m1 -> base is three hops; the feature side only two
        assert compute(git_repo).version == "1.2.3"

    def test_bad_origin(self, git_repo):
        git_repo.linear("1.0")
        with pytest.raises(NotACommit):
            compute(git_repo, origin="does-not-exist")

    def test_compute_for_config(self, git_repo):
        git_repo.linear("4.1", "4.1")
        config = PatchConfig(repo_root=git_repo.path)
        assert compute_for_config(config).version == "4.1.1"


class TestShallowClone:
    def test_deepens_to_answer(self, git_repo, shallow_clone):
        git_repo.linear("1.1", *["1.2"] * 8)
        clone = shallow_clone(git_repo, 2)
        result = compute(clone, deepen_by=3)
        assert result.version == "1.2.7"
        assert result.deepen_count == 3

    def test_shallow_enough_needs_no_fetch(self, git_repo, shallow_clone):
        git_repo.linear(*["1.1"] * 5, "1.2", "1.2")
        clone = shallow_clone(git_repo, 4)
        result = compute(clone, deepen_by=3)
        assert result.version == "1.2.1"
        assert result.deepen_count == 0

    def test_deepen_limit(self, git_repo, shallow_clone):
        git_repo.linear(*["1.2"] * 8)
        clone = shallow_clone(git_repo, 1)
        with pytest.raises(DeepenLimitReached):
            compute(clone, deepen_by=1, max_deepen=2)

    def test_unchanged_file_reaches_root(self, git_repo, shallow_clone):
        git_repo.linear(*["1.2"] * 5)
        clone = shallow_clone(git_repo, 1)
        assert compute(clone, deepen_by=2).version == "1.2.4"

    def test_remote_gone(self, git_repo, shallow_clone):
        git_repo.linear(*["1.2"] * 5)
        clone = shallow_clone(git_repo, 2)
        clone.git("remote", "remove", "origin")
        with pytest.raises(ExtendFailed):
            compute(clone, deepen_by=2)
