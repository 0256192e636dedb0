"""Version-control collaborator (internal).

The source fetcher only needs four operations from version control. They are
expressed as a protocol so tests can substitute an in-memory fake; ``GitCLI``
implements them with the ``git`` executable.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Protocol

from launchprep._internal.process import CommandError, run_command
from launchprep.errors import RevisionNotFound, SourceUnavailable


class VersionControl(Protocol):
    """Operations the source fetcher consumes."""

    def clone(
        self,
        url: str,
        dest: Path,
        ref: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Clone ``url`` into ``dest``; restrict to ``ref`` when given."""
        ...

    def resolve_revision(self, repo: Path, revision: str) -> str:
        """Resolve a revision to a full commit hash."""
        ...

    def checkout(self, repo: Path, commit: str) -> None:
        """Check out exactly ``commit``."""
        ...

    def head(self, repo: Path) -> str:
        """Return the commit hash of HEAD."""
        ...


class GitCLI:
    """VersionControl backed by the git executable."""

    def __init__(self, git: str = "git"):
        self.git = git

    def clone(self, url, dest, ref=None, cancel=None) -> None:
        args = [self.git, "clone", "--quiet"]
        if ref:
            # single-branch works for tags too and saves bandwidth
            args += ["--branch", ref, "--single-branch"]
        args += [url, str(dest)]
        try:
            run_command(args, cancel=cancel)
        except CommandError as e:
            raise SourceUnavailable(f"cannot clone {url}: {e.stderr or e}") from e

    def resolve_revision(self, repo, revision) -> str:
        try:
            out = run_command(
                [self.git, "rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"],
                cwd=repo,
            )
        except CommandError as e:
            raise RevisionNotFound(f"revision {revision} not found") from e
        return out.strip()

    def checkout(self, repo, commit) -> None:
        try:
            run_command([self.git, "checkout", "--quiet", "--detach", commit], cwd=repo)
        except CommandError as e:
            raise RevisionNotFound(f"cannot check out {commit}: {e.stderr or e}") from e

    def head(self, repo) -> str:
        try:
            out = run_command([self.git, "rev-parse", "HEAD"], cwd=repo)
        except CommandError as e:
            raise SourceUnavailable(f"cannot resolve HEAD: {e.stderr or e}") from e
        return out.strip()
