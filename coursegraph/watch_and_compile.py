#!/usr/bin/env python3
"""
# CourseGraph
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

watch_and_compile.py (CourseGraph)

- Watches the content directory for changes.
- On the first change, waits ``watch_debounce`` seconds, then runs one full
  compilation pass for the whole burst of changes.
- A successful pass is published to the ContentStore in one swap; a failed
  pass is logged and the previous index keeps being served.
- Passes never overlap. Changes that arrive while a pass is running are
  coalesced into a single follow-up pass.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from coursegraph.compile import compile_dir
from coursegraph.config_utils import CourseGraphConfig
from coursegraph.errors import CourseGraphError
from coursegraph.inject import TagRegistry, default_registry
from coursegraph.state import ContentStore

logger = logging.getLogger(__name__)

WATCHED_EVENT_TYPES = {"created", "modified", "deleted", "moved"}


# ---------- compilation driver ----------

class Recompiler:
    """Runs compilation passes one at a time and publishes the results."""

    def __init__(
        self,
        config: CourseGraphConfig,
        store: ContentStore,
        registry: Optional[TagRegistry] = None,
    ):
        self.config = config
        self.store = store
        self.registry = registry or default_registry()
        self._pass_lock = threading.Lock()
        self.passes = 0
        self.failures = 0

    def recompile(self) -> bool:
        """
        Run one pass. Returns True if a new index was published.
        Never raises for content errors; the old index stays published.
        """
        with self._pass_lock:
            self.passes += 1
            started = time.monotonic()
            try:
                index = compile_dir(
                    self.config.resolved_input(),
                    self.config.resolved_output(),
                    registry=self.registry,
                    skip_invalid=self.config.skip_invalid,
                )
            except CourseGraphError as e:
                self.failures += 1
                logger.error("[watch] Build failed, keeping previous index%s", e)
                return False
            except Exception:
                self.failures += 1
                logger.exception("[watch] Unexpected error during build, keeping previous index")
                return False

            self.store.publish(index)
            logger.info("[watch] Published new index in %.2fs", time.monotonic() - started)
            return True


# ---------- watchdog handler ----------

class ContentChangeHandler(FileSystemEventHandler):
    """Debounces filesystem events into Recompiler.recompile() calls."""

    def __init__(
        self,
        recompiler: Recompiler,
        debounce: float,
        ignore_dirs: Iterable[Path] = (),
    ):
        super().__init__()
        self.recompiler = recompiler
        self.debounce = debounce
        self.ignore_dirs = [Path(p).resolve() for p in ignore_dirs]
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._running = False
        self._dirty = False

    @property
    def idle(self) -> bool:
        with self._lock:
            return self._timer is None and not self._running

    def is_relevant(self, event: FileSystemEvent) -> bool:
        if event.event_type not in WATCHED_EVENT_TYPES:
            return False
        if event.is_directory and event.event_type == "modified":
            return False
        paths = [event.src_path]
        if getattr(event, "dest_path", None):
            paths.append(event.dest_path)
        return any(self._is_content_path(Path(os.fsdecode(p))) for p in paths)

    def _is_content_path(self, path: Path) -> bool:
        if path.name.startswith(".") or path.name.endswith("~"):
            return False
        resolved = path.resolve()
        for ignored in self.ignore_dirs:
            if resolved == ignored or ignored in resolved.parents:
                return False
        return True

    def on_any_event(self, event: FileSystemEvent):
        if self.is_relevant(event):
            self.schedule(os.fsdecode(event.src_path))

    def schedule(self, src_path: str = "") -> None:
        with self._lock:
            if self._running:
                self._dirty = True
                return
            if self._timer is not None:
                return
            logger.info("[watch] CHANGE DETECTED: %s", src_path)
            self._timer = threading.Timer(self.debounce, self._debounced_run)
            self._timer.daemon = True
            self._timer.start()

    def _debounced_run(self):
        with self._lock:
            self._timer = None
            self._running = True
        try:
            while True:
                self.recompiler.recompile()
                with self._lock:
                    if not self._dirty:
                        break
                logger.info("[watch] Changes arrived during build, rebuilding")
                time.sleep(self.debounce)
                with self._lock:
                    self._dirty = False
        finally:
            with self._lock:
                self._running = False

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


# ---------- main ----------

def start_watcher(recompiler: Recompiler) -> Observer:
    """Start a background observer for the recompiler's content directory."""
    config = recompiler.config
    handler = ContentChangeHandler(
        recompiler,
        config.watch_debounce,
        ignore_dirs=[config.resolved_output()],
    )
    observer = Observer()
    observer.schedule(handler, str(config.resolved_input()), recursive=True)
    observer.start()
    return observer


def watch_and_compile(
    config: CourseGraphConfig,
    store: Optional[ContentStore] = None,
    registry: Optional[TagRegistry] = None,
    stop: Optional[threading.Event] = None,
) -> ContentStore:
    """
    Compile once, then keep recompiling on changes until ``stop`` is set or
    the process is interrupted.
    """
    store = store or ContentStore()
    recompiler = Recompiler(config, store, registry)

    logger.info("[watch] Running initial build...")
    recompiler.recompile()

    observer = start_watcher(recompiler)
    logger.info("[watch] WATCHING: %s", config.resolved_input())
    logger.info("[watch] OUTPUT: %s", config.resolved_output())

    stop = stop or threading.Event()
    try:
        while not stop.wait(1):
            pass
    except KeyboardInterrupt:
        logger.info("[watch] Stopping...")
    finally:
        observer.stop()
        observer.join()
    return store
