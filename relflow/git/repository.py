"""Git repository abstraction.

Repository is the version-control collaborator of the release pipeline. It
answers the two questions guards ask (which branch is checked out, how much
the changelog differs from the release reference) and performs the branch
operations the bump controller sequences.

Usage:
    repo = Repository(Path("/path/to/project"))

    match repo.changed_lines("HISTORY.md", "origin/stable"):
        case Ok(count):
            print(f"{count} changelog lines differ")
        case Err(e):
            print(f"git diff failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.platform.process import ProcessError
from relflow.platform.process import run as run_process

__all__ = ["GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "merge --no-ff")
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """Git operations on a single checkout.

    All methods that can fail return Result types.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def current_branch(self) -> str | None:
        """Get current branch name.

        Returns None on detached HEAD or error.
        """
        match self._run(["rev-parse", "--abbrev-ref", "HEAD"]):
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch in ("", "HEAD") else branch
            case Err(_):
                return None

    def changed_lines(self, path: str, ref: str) -> Result[int, GitError]:
        """Count the lines of ``git diff HEAD..ref -- path``.

        Zero means the file is identical on HEAD and ``ref``.
        """
        result = self._run(["diff", f"HEAD..{ref}", "--", path])
        match result:
            case Err(e):
                return Err(_git_error("diff", e))
            case Ok(stdout):
                return Ok(len(stdout.splitlines()))

    def checkout(self, branch: str) -> Result[None, GitError]:
        return self._simple(["checkout", branch], "checkout")

    def create_branch(self, branch: str, start_point: str | None = None) -> Result[None, GitError]:
        """Create ``branch`` (from ``start_point`` or HEAD) and check it out."""
        args = ["checkout", "-b", branch]
        if start_point is not None:
            args.append(start_point)
        return self._simple(args, "checkout -b")

    def checkout_or_create(
        self, branch: str, start_point: str | None = None
    ) -> Result[None, GitError]:
        """Check out ``branch``, creating it if it does not exist."""
        result = self.checkout(branch)
        if isinstance(result, Ok):
            return result
        return self.create_branch(branch, start_point)

    def merge(
        self,
        branch: str,
        *,
        no_ff: bool = False,
        message: str | None = None,
    ) -> Result[None, GitError]:
        args = ["merge"]
        if no_ff:
            args.append("--no-ff")
        args.append(branch)
        if message is not None:
            args.extend(["-m", message])
        return self._simple(args, "merge --no-ff" if no_ff else "merge")

    def push(
        self,
        remote: str | None = None,
        branch: str | None = None,
        *,
        tags: bool = False,
    ) -> Result[None, GitError]:
        """Push the current (or given) branch, optionally with tags."""
        args = ["push"]
        if tags:
            args.append("--tags")
        if remote is not None:
            args.append(remote)
            if branch is not None:
                args.append(branch)
        return self._simple(args, "push --tags" if tags else "push")

    def _simple(self, args: list[str], command: str) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(command, result.error))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)


def _git_error(command: str, e: ProcessError) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
        returncode=e.returncode,
    )
