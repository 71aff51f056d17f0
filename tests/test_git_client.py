"""Tests for the git client, including fast-import against a real repository."""

import shutil
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from docver.domain.commit import AddBytes, DeleteAll, DeletePath, Signature, build_transaction
from docver.errors import ExecutionFailedError, NonFastForwardError, SpawnError
from docver.infra.git_client import GitClient, classify_fast_import_failure
from docver.services.deploy_service import apply_transaction

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

BOT = Signature("Test", "test@example.com", "1700000000 +0000")


def completed(returncode=0, stdout=b"", stderr=b""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestClassifyFailure:
    """Tests for classify_fast_import_failure()."""

    def test_non_fast_forward(self):
        """Test the non-fast-forward diagnostic."""
        stderr = "warning: Not updating refs/heads/gh-pages (non-fast-forward)\n"
        error = classify_fast_import_failure("refs/heads/gh-pages", stderr)
        assert isinstance(error, NonFastForwardError)
        assert error.ref == "refs/heads/gh-pages"
        assert "descend from the current branch tip" in error.hint
        assert str(error).endswith("Full error: " + stderr.strip())

    def test_does_not_contain(self):
        """Test git's 'new tip does not contain' wording."""
        stderr = "warning: Not updating refs/heads/gh-pages (new tip abc does not contain def)"
        assert isinstance(classify_fast_import_failure("r", stderr), NonFastForwardError)

    def test_other_failure(self):
        """Test that other diagnostics are generic failures."""
        error = classify_fast_import_failure("r", "  fatal: Unsupported command: bogus\n")
        assert isinstance(error, ExecutionFailedError)
        assert not isinstance(error, NonFastForwardError)
        assert error.stderr == "fatal: Unsupported command: bogus"

    def test_not_updating_alone(self):
        """Test that 'Not updating' without a reason is not a non-fast-forward."""
        assert isinstance(classify_fast_import_failure("r", "Not updating"), ExecutionFailedError)


class TestGitClientMocked:
    """Tests for GitClient with subprocess mocked."""

    @patch('docver.infra.git_client.subprocess.run')
    def test_fast_import_pipes_document(self, mock_run):
        """Test that the stream goes to stdin and stdout is discarded."""
        mock_run.return_value = completed(stdout=None)
        GitClient().fast_import("/repo", b"done\n", "refs/heads/gh-pages")

        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "-C", "/repo", "fast-import"]
        assert kwargs["input"] == b"done\n"
        assert kwargs["stdout"] == subprocess.DEVNULL
        assert kwargs["stderr"] == subprocess.PIPE
        assert kwargs["timeout"] is None

    @patch('docver.infra.git_client.subprocess.run')
    def test_fast_import_non_fast_forward(self, mock_run):
        """Test that a rejected ref update raises NonFastForwardError."""
        mock_run.return_value = completed(
            returncode=1,
            stdout=None,
            stderr=b"warning: Not updating refs/heads/gh-pages (non-fast-forward)\n",
        )
        with pytest.raises(NonFastForwardError):
            GitClient().fast_import("/repo", b"done\n", "refs/heads/gh-pages")

    @patch('docver.infra.git_client.subprocess.run')
    def test_fast_import_failure(self, mock_run):
        """Test that other failures carry the diagnostic text."""
        mock_run.return_value = completed(returncode=128, stdout=None, stderr=b"fatal: not a git repository\n")
        with pytest.raises(ExecutionFailedError) as exc_info:
            GitClient().fast_import("/repo", b"done\n", "refs/heads/gh-pages")
        assert exc_info.value.stderr == "fatal: not a git repository"

    @patch('docver.infra.git_client.subprocess.run')
    def test_spawn_failure(self, mock_run):
        """Test that a missing executable raises SpawnError."""
        mock_run.side_effect = FileNotFoundError("git")
        with pytest.raises(SpawnError):
            GitClient().fast_import("/repo", b"done\n", "r")

    @patch('docver.infra.git_client.subprocess.run')
    def test_rev_parse(self, mock_run):
        """Test resolving and failing to resolve revisions."""
        mock_run.return_value = completed(stdout=b"abc123\n")
        assert GitClient().rev_parse("/repo", "HEAD") == "abc123"
        assert mock_run.call_args[0][0][-1] == "HEAD^{commit}"

        mock_run.return_value = completed(returncode=1)
        assert GitClient().rev_parse("/repo", "nope") is None

    @patch('docver.infra.git_client.subprocess.run')
    def test_show_file_missing(self, mock_run):
        """Test that a missing file reads as None."""
        mock_run.return_value = completed(returncode=128, stderr=b"fatal: path 'versions.json' does not exist")
        assert GitClient().show_file("/repo", "gh-pages", "versions.json") is None

    @patch('docver.infra.git_client.subprocess.run')
    def test_fetch_branch_refspec(self, mock_run):
        """Test that fetching a branch updates its remote-tracking ref."""
        mock_run.return_value = completed()
        assert GitClient().fetch("/repo", "origin", "gh-pages")
        assert mock_run.call_args[0][0][3:] == [
            "fetch", "origin", "+refs/heads/gh-pages:refs/remotes/origin/gh-pages",
        ]

    @patch('docver.infra.git_client.subprocess.run')
    def test_push_failure(self, mock_run):
        """Test that a failed push raises."""
        mock_run.return_value = completed(returncode=1, stderr=b"rejected")
        with pytest.raises(ExecutionFailedError):
            GitClient().push("/repo", "origin", "gh-pages")


@pytest.fixture
def repo(tmp_path):
    path = tmp_path / "repo"
    path.mkdir()
    subprocess.run(["git", "init", "-q", str(path)], check=True)
    return path


def git(repo, *args):
    return subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True).stdout


@requires_git
class TestFastImportIntegration:
    """Apply transactions to a real repository."""

    def test_root_commit(self, repo):
        """Test creating a branch from nothing."""
        txn = build_transaction(
            "refs/heads/gh-pages",
            "First deploy",
            [AddBytes("1.0.0/index.html", b"<h1>One</h1>"), AddBytes("versions.json", b"[]\n")],
            author=BOT,
        )
        apply_transaction(txn, repo)

        assert git(repo, "show", "gh-pages:1.0.0/index.html") == b"<h1>One</h1>"
        assert git(repo, "log", "-1", "--format=%an <%ae>|%s", "gh-pages").strip() == b"Test <test@example.com>|First deploy"
        assert git(repo, "status", "--porcelain") == b""

    def test_incremental_commit(self, repo):
        """Test deleting a directory and adding files on top of a parent."""
        client = GitClient()
        apply_transaction(build_transaction(
            "refs/heads/gh-pages", "one",
            [AddBytes("1.0.0/a.html", b"a"), AddBytes("1.0.0/b.html", b"b"), AddBytes("2.0.0/c.html", b"c")],
            author=BOT,
        ), repo, client)
        tip = client.rev_parse(repo, "refs/heads/gh-pages")

        apply_transaction(build_transaction(
            "refs/heads/gh-pages", "two",
            [DeletePath("1.0.0"), AddBytes("1.0.0/new.html", b"new")],
            parent=tip,
            author=BOT,
        ), repo, client)

        files = git(repo, "ls-tree", "-r", "--name-only", "gh-pages").decode().split()
        assert files == ["1.0.0/new.html", "2.0.0/c.html"]
        assert client.rev_parse(repo, "gh-pages~1") == tip

    def test_deleteall(self, repo):
        """Test clearing the tree."""
        client = GitClient()
        apply_transaction(build_transaction("refs/heads/gh-pages", "one", [AddBytes("old", b"x")], author=BOT), repo)
        tip = client.rev_parse(repo, "refs/heads/gh-pages")
        apply_transaction(build_transaction(
            "refs/heads/gh-pages", "two", [DeleteAll(), AddBytes("new", b"y")], parent=tip, author=BOT,
        ), repo)
        assert git(repo, "ls-tree", "-r", "--name-only", "gh-pages").decode().split() == ["new"]

    def test_non_fast_forward(self, repo):
        """Test that an unrelated commit is rejected."""
        apply_transaction(build_transaction("refs/heads/gh-pages", "one", [AddBytes("a", b"a")], author=BOT), repo)
        unrelated = build_transaction("refs/heads/gh-pages", "two", [AddBytes("b", b"b")], author=BOT)

        with pytest.raises(NonFastForwardError) as exc_info:
            apply_transaction(unrelated, repo)
        assert exc_info.value.ref == "refs/heads/gh-pages"
        assert git(repo, "ls-tree", "-r", "--name-only", "gh-pages").decode().split() == ["a"]

    def test_bad_repository(self, tmp_path):
        """Test that a non-repository is a generic failure."""
        with pytest.raises(ExecutionFailedError):
            apply_transaction(build_transaction("refs/heads/x", "m", author=BOT), tmp_path)

    def test_show_file_and_ancestry(self, repo):
        """Test reading files from a revision and ancestry checks."""
        client = GitClient()
        apply_transaction(build_transaction("refs/heads/gh-pages", "one", [AddBytes("v.json", b"[]")], author=BOT), repo)
        first = client.rev_parse(repo, "refs/heads/gh-pages")
        apply_transaction(build_transaction("refs/heads/gh-pages", "two", [], parent=first, author=BOT), repo)
        second = client.rev_parse(repo, "refs/heads/gh-pages")

        assert client.show_file(repo, second, "v.json") == b"[]"
        assert client.show_file(repo, second, "missing.json") is None
        assert client.is_ancestor(repo, first, second)
        assert not client.is_ancestor(repo, second, first)
