import os
import time
import queue
import threading
from watchdog.observers.polling import PollingObserver as Observer
from watchdog.events import FileSystemEventHandler, FileSystemMovedEvent
from PySide6.QtCore import QObject, Signal, QTimer

from core.menu_store import file_digest


class _StoreEventHandler(FileSystemEventHandler):
    def __init__(self, event_queue, store_path):
        super().__init__()
        self.queue = event_queue
        self.store_path = os.path.normcase(os.path.abspath(store_path))

    def on_any_event(self, event):
        if event.is_directory:
            return
        dest_path = event.dest_path if isinstance(event, FileSystemMovedEvent) else None
        # Saves are atomic replaces, so the store shows up as a move target.
        if self._is_store(event.src_path) or (dest_path and self._is_store(dest_path)):
            self.queue.put({'action': event.event_type, 'src_path': event.src_path, 'dst_path': dest_path})

    def _is_store(self, path):
        return os.path.normcase(os.path.abspath(path)) == self.store_path


class StoreWatcher(QObject):
    """
    Reports edits of the local menu store file so the tree can be re-fetched.

    own_digest returns the digest of the editor's last save; a file whose
    bytes match it was written by us and is not reported.
    """
    store_changed = Signal()

    def __init__(self, store_path, poll_interval=150, own_digest=None):
        super().__init__()
        self.store_path = str(store_path)
        self.event_queue = queue.Queue()
        self._stop_event = threading.Event()
        self._thread = None
        self.own_digest = own_digest
        self._last_seen = file_digest(self.store_path)

        # This timer drains the queue from the main Qt thread
        self.poll_timer = QTimer(self)
        self.poll_timer.timeout.connect(self._process_queue)
        self.poll_timer.setInterval(poll_interval)

    def start(self):
        if self.isRunning():
            return
        self._last_seen = file_digest(self.store_path)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_observer)
        self._thread.daemon = True
        self._thread.start()
        self.poll_timer.start()
        print(f"[STORE_WATCH] 👀 Watching {self.store_path}")

    def stop(self):
        if not self.isRunning():
            return
        self._stop_event.set()
        self._thread.join(timeout=2)
        self._thread = None
        self.poll_timer.stop()
        print(f"[STORE_WATCH] 🛑 Stopped watching {self.store_path}")

    def isRunning(self):
        return self._thread is not None and self._thread.is_alive()

    def _run_observer(self):
        """This method runs in the background thread."""
        event_handler = _StoreEventHandler(self.event_queue, self.store_path)
        observer = Observer()
        observer.schedule(event_handler, os.path.dirname(os.path.abspath(self.store_path)), recursive=False)
        observer.start()
        while not self._stop_event.is_set():
            time.sleep(0.1)
        observer.stop()
        observer.join()

    def _process_queue(self):
        """This method runs in the main Qt thread."""
        events = []
        while True:
            try:
                events.append(self.event_queue.get_nowait())
            except queue.Empty:
                break

        if not events:
            return
        current = file_digest(self.store_path)
        if current == self._last_seen:
            return
        self._last_seen = current
        if self.own_digest is not None and current is not None and current == self.own_digest():
            print(f"[STORE_WATCH] ⏭️ Skipping our own save of {self.store_path}")
            return

        print(f"[STORE_WATCH] 🔔 {len(events)} change(s) to the menu store detected")
        self.store_changed.emit()
