"""Source fetching: turn a source reference into an immutable local snapshot."""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import List, Optional, Sequence

from launchprep._internal.vcs import GitCLI, VersionControl
from launchprep.contracts import FetchedSource, SourceReference
from launchprep.errors import FetchCancelled, PreparationError, SourceUnavailable
from launchprep.kernel.hash_utils import hash_tree

logger = logging.getLogger(__name__)

TEMP_PREFIX = "launchprep-src-"


def fetch_source(
    reference: SourceReference,
    vcs: Optional[VersionControl] = None,
    cancel: Optional[threading.Event] = None,
) -> FetchedSource:
    """Clone a reference into a fresh temporary directory.

    With a pinned hash, exactly that commit is checked out and recorded; two
    fetches of the same pin yield identical trees. Without one, the tip of
    ``ref`` (or the remote's default branch) is resolved and recorded so the
    build can be cache-keyed. Every snapshot carries a ``tree_hash`` over its
    files, so reproducibility of a pin can be checked by comparing digests.
    The temporary directory is removed again if the fetch fails.

    Raises:
        SourceUnavailable: If the remote or the ref cannot be cloned
        RevisionNotFound: If the pinned hash is not in the history
        FetchCancelled: If ``cancel`` is set before the clone completes
    """
    vcs = vcs if vcs is not None else GitCLI()
    path = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    logger.info("fetching %s (ref=%s, hash=%s) into %s",
                reference.url, reference.ref, reference.hash, path)
    try:
        if cancel is not None and cancel.is_set():
            raise FetchCancelled(f"fetch of {reference.url} cancelled")
        vcs.clone(reference.url, path, ref=reference.ref, cancel=cancel)
        if cancel is not None and cancel.is_set():
            raise FetchCancelled(f"fetch of {reference.url} cancelled")

        if reference.hash:
            commit = vcs.resolve_revision(path, reference.hash)
            vcs.checkout(path, commit)
            resolved = reference.hash
        else:
            resolved = vcs.head(path)
        tree_hash = hash_tree(path)
    except PreparationError:
        shutil.rmtree(path, ignore_errors=True)
        raise
    except OSError as e:
        shutil.rmtree(path, ignore_errors=True)
        raise SourceUnavailable(f"cannot fetch {reference.url}: {e}") from e

    logger.info("fetched %s at %s (%s)", reference.url, resolved, tree_hash)
    return FetchedSource(path=path, hash=resolved, tree_hash=tree_hash, reference=reference)


def discard_source(source: FetchedSource) -> None:
    """Remove a fetched snapshot from disk."""
    shutil.rmtree(source.path, ignore_errors=True)


def fetch_many(
    references: Sequence[SourceReference],
    vcs: Optional[VersionControl] = None,
    max_workers: int = 4,
    cancel: Optional[threading.Event] = None,
) -> List[FetchedSource]:
    """Fetch independent references concurrently, in input order.

    Fails fast: the first error sets the shared cancellation event so
    in-flight fetches terminate, pending ones never start, and every snapshot
    already fetched is discarded before the error is re-raised.
    """
    if not references:
        return []
    vcs = vcs if vcs is not None else GitCLI()
    cancel = cancel if cancel is not None else threading.Event()

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = [pool.submit(fetch_source, ref, vcs, cancel) for ref in references]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        first_error = _first_error(futures)
        if first_error is not None:
            cancel.set()
            for f in not_done:
                f.cancel()
            wait(not_done)

    if first_error is None:
        return [f.result() for f in futures]

    for f in futures:
        if f.done() and not f.cancelled() and f.exception() is None:
            discard_source(f.result())
    raise first_error


def _first_error(futures) -> Optional[BaseException]:
    # Prefer the root failure over the cancellations it caused
    errors = [f.exception() for f in futures if f.done() and not f.cancelled() and f.exception()]
    for e in errors:
        if not isinstance(e, FetchCancelled):
            return e
    return errors[0] if errors else None
