"""
Git client infrastructure for docver.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..errors import (
    DocverError,
    ExecutionFailedError,
    NonFastForwardError,
    SpawnError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class GitResult:
    """Result of a git command."""
    returncode: int
    stdout: bytes = b""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return self.stdout.decode('utf-8', errors='replace').strip()


def classify_fast_import_failure(ref: str, stderr: str) -> DocverError:
    """
    Map git fast-import diagnostics to an error.

    Args:
        ref: Ref the import tried to update
        stderr: Diagnostic output of git fast-import

    Returns:
        NonFastForwardError for rejected ref updates, ExecutionFailedError otherwise
    """
    stderr = stderr.strip()
    if "Not updating" in stderr and ("non-fast-forward" in stderr or "does not contain" in stderr):
        return NonFastForwardError(ref, stderr)
    return ExecutionFailedError("git fast-import", stderr)


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        tip = client.rev_parse(".", "refs/heads/gh-pages")
        if tip is None:
            print("Branch does not exist yet")
    """

    def __init__(self, executable: str = "git", timeout: Optional[int] = 120):
        """
        Initialize GitClient.

        Args:
            executable: git executable to invoke
            timeout: Timeout in seconds for query commands (None = no limit).
                fast-import and push always run to completion.
        """
        self.executable = executable
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        cwd: PathLike,
        input: Optional[bytes] = None,
        timeout: Optional[int] = None,
        discard_stdout: bool = False,
    ) -> GitResult:
        """
        Run a git command.

        Args:
            args: Arguments after the git executable
            cwd: Repository directory (passed as `git -C`)
            input: Bytes piped to stdin
            timeout: Timeout in seconds
            discard_stdout: Send stdout to /dev/null

        Returns:
            GitResult with raw stdout and decoded stderr

        Raises:
            SpawnError: git could not be launched
        """
        cmd = [self.executable, "-C", str(cwd)] + list(args)
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                input=input,
                stdout=subprocess.DEVNULL if discard_stdout else subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
            )
        except OSError as e:
            raise SpawnError(f"{self.executable} {args[0]}", e) from e

        stderr = (result.stderr or b"").decode('utf-8', errors='replace')
        if result.returncode != 0:
            logger.debug(f"git {args[0]} exited with {result.returncode}: {stderr.strip()}")
        return GitResult(result.returncode, result.stdout or b"", stderr)

    def is_git_repo(self, path: PathLike) -> bool:
        """Check if path is inside a git work tree or git directory."""
        try:
            result = self._run(["rev-parse", "--git-dir"], cwd=path, timeout=self.timeout)
        except SpawnError:
            return False
        return result.ok

    def rev_parse(self, path: PathLike, rev: str) -> Optional[str]:
        """
        Resolve a revision to a commit id.

        Returns:
            Full commit hash, or None if `rev` does not name a commit
        """
        result = self._run(
            ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"],
            cwd=path,
            timeout=self.timeout,
        )
        if result.ok and result.text:
            return result.text
        return None

    def current_commit(self, path: PathLike) -> Optional[str]:
        """Get the commit HEAD points to."""
        return self.rev_parse(path, "HEAD")

    def show_file(self, path: PathLike, rev: str, file_path: str) -> Optional[bytes]:
        """
        Read a file from a revision without checking it out.

        Returns:
            File contents, or None if the revision or the file does not exist
        """
        result = self._run(["show", f"{rev}:{file_path}"], cwd=path, timeout=self.timeout)
        if not result.ok:
            return None
        return result.stdout

    def is_ancestor(self, path: PathLike, ancestor: str, descendant: str) -> bool:
        """Check whether `ancestor` is reachable from `descendant`."""
        result = self._run(
            ["merge-base", "--is-ancestor", ancestor, descendant],
            cwd=path,
            timeout=self.timeout,
        )
        return result.ok

    def fetch(self, path: PathLike, remote: str = "origin", branch: Optional[str] = None) -> bool:
        """
        Fetch from remote.

        When `branch` is given, only that branch is fetched into its
        remote-tracking ref.

        Returns:
            True if successful
        """
        args = ["fetch", remote]
        if branch:
            args.append(f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}")
        result = self._run(args, cwd=path, timeout=self.timeout)
        if not result.ok:
            logger.warning(f"git fetch {remote} failed: {result.stderr.strip()}")
        return result.ok

    def push(self, path: PathLike, remote: str, branch: str) -> None:
        """
        Push a local branch to the remote branch of the same name.

        Raises:
            ExecutionFailedError: git push exited nonzero
        """
        result = self._run(
            ["push", remote, f"refs/heads/{branch}:refs/heads/{branch}"],
            cwd=path,
        )
        if not result.ok:
            raise ExecutionFailedError("git push", result.stderr.strip(), result.returncode)

    def fast_import(self, path: PathLike, document: bytes, ref: str) -> None:
        """
        Apply a fast-import stream to the repository.

        The stream is written to git's stdin in full before waiting for the
        process to exit. Standard output is discarded.

        Args:
            path: Repository directory
            document: Complete fast-import stream
            ref: Ref the stream updates, used in error messages

        Raises:
            SpawnError: git could not be launched
            NonFastForwardError: git refused to move `ref`
            ExecutionFailedError: Any other failure
        """
        result = self._run(["fast-import"], cwd=path, input=document, discard_stdout=True)
        if not result.ok:
            raise classify_fast_import_failure(ref, result.stderr)
        logger.debug(f"git fast-import updated {ref}")
