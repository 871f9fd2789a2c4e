"""Rebuild a site whenever its sources change.

A ``watchdog`` observer reports file events under the site directory.
Events for the output directory and for editor scratch files are dropped by
:func:`should_rebuild`; the rest become rebuild requests for a
:class:`RebuildScheduler`, which runs one build at a time on its own thread
and folds requests that arrive close together into a single build.

Examples
--------
>>> from pathlib import Path
>>> from bakery.watch import should_rebuild
>>> target = Path("site/target")
>>> should_rebuild(Path("site/content/index.md"), target)
True
>>> should_rebuild(Path("site/content/index.md~"), target)
False
>>> should_rebuild(Path("site/target/index.html"), target)
False
"""

from __future__ import annotations

import fnmatch
import logging
import os
import threading
import time
import typing as typ
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ._constants import TARGET_SUBDIR

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from watchdog.events import FileSystemEvent

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 1.0
IGNORED_PATTERNS = ("*~", ".#*", "#*#", "*.swp", "*.swx", "*.swo", "*.tmp", "*.bak")


def should_rebuild(path: Path, target_dir: Path) -> bool:
    """Return ``True`` if a change to ``path`` should trigger a rebuild."""
    if path == target_dir or path.is_relative_to(target_dir):
        return False
    return not any(fnmatch.fnmatchcase(path.name, pattern) for pattern in IGNORED_PATTERNS)


def _event_paths(event: FileSystemEvent) -> list[Path]:
    paths = [Path(os.fsdecode(event.src_path))]
    dest = getattr(event, "dest_path", "")
    if dest:
        paths.append(Path(os.fsdecode(dest)))
    return paths


class RebuildScheduler:
    """Serialize and debounce rebuild requests.

    Requests that arrive within ``debounce`` seconds of each other produce one
    build. A request that arrives while a build is running schedules exactly
    one follow-up build once it finishes. A build that raises is logged and
    the scheduler keeps serving requests.
    """

    def __init__(
        self,
        build: cabc.Callable[[], object],
        *,
        debounce: float = DEFAULT_DEBOUNCE,
    ) -> None:
        self.build = build
        self.debounce = debounce
        self.builds = 0
        self._cond = threading.Condition()
        self._requested_at: float | None = None
        self._stopped = False
        self._thread = threading.Thread(
            target=self._loop, name="bakery-rebuild", daemon=True
        )

    def start(self) -> None:
        """Start the worker thread."""
        self._thread.start()

    def request(self, *, immediate: bool = False) -> None:
        """Ask for a rebuild, restarting the debounce window."""
        with self._cond:
            now = time.monotonic()
            self._requested_at = now - self.debounce if immediate else now
            self._cond.notify()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the worker once any running build completes."""
        with self._cond:
            self._stopped = True
            self._cond.notify()
        if self._thread.is_alive():
            self._thread.join(timeout)

    def _next_request(self) -> bool:
        """Block until a debounced request is due; ``False`` once stopped."""
        with self._cond:
            while not self._stopped:
                if self._requested_at is None:
                    self._cond.wait()
                    continue
                remaining = self._requested_at + self.debounce - time.monotonic()
                if remaining <= 0:
                    self._requested_at = None
                    return True
                self._cond.wait(remaining)
            return False

    def _loop(self) -> None:
        while self._next_request():
            self.builds += 1
            try:
                self.build()
            except Exception:
                logger.exception("rebuild failed")


class SiteChangeHandler(FileSystemEventHandler):
    """Forward qualifying file events to a :class:`RebuildScheduler`."""

    def __init__(self, scheduler: RebuildScheduler, target_dir: Path) -> None:
        super().__init__()
        self.scheduler = scheduler
        self.target_dir = target_dir

    def handle(self, event: FileSystemEvent) -> None:
        if event.is_directory and event.event_type == "modified":
            return
        paths = _event_paths(event)
        if any(should_rebuild(path, self.target_dir) for path in paths):
            logger.info("change detected: %s", paths[-1])
            self.scheduler.request()

    def on_created(self, event: FileSystemEvent) -> None:
        self.handle(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self.handle(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self.handle(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self.handle(event)


def watch(
    site_dir: Path,
    build: cabc.Callable[[], object],
    *,
    debounce: float = DEFAULT_DEBOUNCE,
    stop_event: threading.Event | None = None,
) -> None:
    """Build ``site_dir`` now and again after every qualifying change.

    Parameters
    ----------
    site_dir : Path
        Root of the site to watch, recursively.
    build : Callable[[], object]
        Runs one build. Exceptions are logged and do not end the watch.
    debounce : float, optional
        Seconds of quiet required before a rebuild starts.
    stop_event : threading.Event, optional
        Ends the watch when set. Without it the watch runs until
        ``KeyboardInterrupt``.
    """
    stop = stop_event or threading.Event()
    scheduler = RebuildScheduler(build, debounce=debounce)
    handler = SiteChangeHandler(scheduler, site_dir.resolve() / TARGET_SUBDIR)
    observer = Observer()
    observer.schedule(handler, str(site_dir.resolve()), recursive=True)
    scheduler.start()
    observer.start()
    scheduler.request(immediate=True)
    logger.info("watching %s for changes", site_dir)
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("stopping watch")
    finally:
        observer.stop()
        observer.join()
        scheduler.stop()


__all__ = [
    "DEFAULT_DEBOUNCE",
    "IGNORED_PATTERNS",
    "RebuildScheduler",
    "SiteChangeHandler",
    "should_rebuild",
    "watch",
]
