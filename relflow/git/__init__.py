"""Git operations used by guards and version bumps.

Usage:
    from relflow.git import Repository

    repo = Repository(project.root)
    branch = repo.current_branch()
"""

from relflow.git.repository import GitError, Repository

__all__ = ["GitError", "Repository"]
