import logging
import os
from enum import Enum
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    CHANGED = "changed"
    ADDED = "added"
    REMOVED = "removed"

    def __str__(self):
        return self.value


class DocChangeHandler(FileSystemEventHandler):
    """
    Forwards file events under one watched directory to a RebuildScheduler.

    Features:
    - Ignores hidden files and anything inside hidden directories
    - Ignores directory events and open/close events
    - Treats a move as a removal plus an addition
    - Reports a new file once: the modify that follows its create is not logged again
    """

    def __init__(self, scheduler, root, label="Source"):
        """
        Initialize the handler.

        Args:
            scheduler: Object with notify() and an observer, usually a RebuildScheduler
            root: The watched directory; hidden-path checks are relative to it
            label: Name used in log lines ("Source", "Template")
        """
        self.scheduler = scheduler
        self.root = os.path.abspath(root)
        self.label = label
        self.just_added = set()

    def on_any_event(self, event):
        if event.is_directory:
            return

        if event.event_type == EVENT_TYPE_MODIFIED:
            path = os.fsdecode(event.src_path)
            if path in self.just_added:
                self.just_added.discard(path)
                self.scheduler.notify()
                return
            self._dispatch(path, ChangeKind.CHANGED)
        elif event.event_type == EVENT_TYPE_CREATED:
            self._dispatch(event.src_path, ChangeKind.ADDED)
        elif event.event_type == EVENT_TYPE_DELETED:
            self._dispatch(event.src_path, ChangeKind.REMOVED)
        elif event.event_type == EVENT_TYPE_MOVED:
            self._dispatch(event.src_path, ChangeKind.REMOVED)
            self._dispatch(event.dest_path, ChangeKind.ADDED)
            self.just_added.discard(os.fsdecode(event.dest_path))

    def is_hidden(self, path):
        path = os.path.abspath(os.fsdecode(path))
        try:
            parts = Path(path).relative_to(self.root).parts
        except ValueError:
            parts = Path(path).parts
        return any(part.startswith('.') for part in parts)

    def _dispatch(self, path, kind):
        path = os.fsdecode(path)
        if not path or self.is_hidden(path):
            return
        if kind == ChangeKind.ADDED:
            self.just_added.add(path)
        else:
            self.just_added.discard(path)
        self.scheduler.observer.on_change(path, kind, self.label)
        self.scheduler.notify()


def watch_and_rebuild(watch_dirs, scheduler, recursive=True):
    """
    Start watching directories and feed their changes to the scheduler.

    Args:
        watch_dirs: Iterable of (label, directory) pairs
        scheduler: RebuildScheduler receiving notify() calls
        recursive: Watch subdirectories too

    Returns:
        The started watchdog Observer; stop() and join() it on shutdown
    """
    observer = Observer()
    for label, directory in watch_dirs:
        observer.schedule(DocChangeHandler(scheduler, directory, label), str(directory), recursive=recursive)
        logger.debug("Scheduled %s watch on %s", label.lower(), directory)
    observer.start()
    return observer
