import pytest
from unittest.mock import patch
import os

# Adjust path to import from 'core'
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.menu_store import JsonMenuStore
from core.store_watcher import StoreWatcher
from tests.fixtures.menu_gen import sample_menu_nodes, write_store


def queue_store_event(watcher, action='modified'):
    if action == 'moved':
        event = {'action': action, 'src_path': watcher.store_path + '.tmp', 'dst_path': watcher.store_path}
    else:
        event = {'action': action, 'src_path': watcher.store_path, 'dst_path': None}
    watcher.event_queue.put(event)


@pytest.fixture
def store_path(tmp_path):
    with patch('builtins.print'):
        return write_store(tmp_path / "menus.json", sample_menu_nodes())


@pytest.fixture(autouse=True)
def quiet():
    with patch('builtins.print'):
        yield


@pytest.fixture
def watcher(store_path, qapp):
    watcher = StoreWatcher(store_path, poll_interval=100)
    try:
        yield watcher
    finally:
        watcher.stop()


@pytest.fixture
def store(store_path):
    return JsonMenuStore(store_path)


@pytest.fixture
def own_watcher(store, store_path, qapp):
    watcher = StoreWatcher(store_path, poll_interval=100, own_digest=lambda: store.last_write_digest)
    try:
        yield watcher
    finally:
        watcher.stop()


def test_external_edit_emits_store_changed(watcher, store_path, qtbot):
    watcher.start()
    qtbot.wait(500)  # Let the observer take its first snapshot

    nodes = sample_menu_nodes()
    nodes[0].title = "Edited by someone else"
    with qtbot.waitSignal(watcher.store_changed, timeout=5000):
        write_store(store_path, nodes)


def test_other_files_are_ignored(watcher, store_path, qtbot):
    watcher.start()
    qtbot.wait(500)

    with qtbot.assertNotEmitted(watcher.store_changed, wait=2500):
        (store_path.parent / "notes.txt").write_text("unrelated", encoding="utf-8")


def test_own_save_is_not_reported(store, own_watcher, qtbot):
    store.update(1, {"title": "Renamed here"})
    queue_store_event(own_watcher, 'moved')

    with qtbot.assertNotEmitted(own_watcher.store_changed):
        own_watcher._process_queue()
    assert own_watcher.event_queue.empty()


def test_external_edit_right_after_own_save_is_reported(store, own_watcher, store_path, qtbot):
    store.update(1, {"title": "Renamed here"})
    queue_store_event(own_watcher, 'moved')
    own_watcher._process_queue()

    nodes = store.fetch_all()
    nodes[1].title = "Edited by someone else"
    write_store(store_path, nodes, next_id=store._next_id)
    queue_store_event(own_watcher)

    with qtbot.waitSignal(own_watcher.store_changed):
        own_watcher._process_queue()


def test_external_edit_during_own_save_window_is_reported(store, own_watcher, store_path, qtbot):
    own_watcher.start()
    qtbot.wait(500)

    with qtbot.assertNotEmitted(own_watcher.store_changed, wait=2500):
        store.apply_reparent(6, None)

    nodes = store.fetch_all()
    nodes[0].title = "Edited by someone else"
    with qtbot.waitSignal(own_watcher.store_changed, timeout=5000):
        store.apply_reparent(4, None)
        write_store(store_path, nodes, next_id=store._next_id)


def test_touch_without_content_change_is_ignored(watcher, qtbot):
    queue_store_event(watcher)

    with qtbot.assertNotEmitted(watcher.store_changed):
        watcher._process_queue()
    assert watcher.event_queue.empty()


def test_queued_events_emit_once(watcher, store_path, qtbot):
    nodes = sample_menu_nodes()
    nodes[0].title = "Edited by someone else"
    write_store(store_path, nodes)
    for _ in range(3):
        queue_store_event(watcher)

    with qtbot.waitSignal(watcher.store_changed) as blocker:
        watcher._process_queue()
    assert blocker.signal_triggered
    assert watcher.event_queue.empty()

    # Same bytes again: nothing new to report
    queue_store_event(watcher)
    with qtbot.assertNotEmitted(watcher.store_changed):
        watcher._process_queue()


def test_start_and_stop(watcher):
    watcher.start()
    assert watcher.isRunning()
    watcher.stop()
    assert not watcher.isRunning()
