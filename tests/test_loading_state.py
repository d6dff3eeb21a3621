"""
Tests for LoadingState (flags, listeners, phase progress).
"""
import pytest

from gamedex.controllers.sync_progress_tracker import LoadingState


def test_initial_state():
    state = LoadingState().to_dict()
    assert state['status'] == 'idle'
    assert state['progress_percent'] == 0
    assert not state['scan_in_progress']
    assert not state['metadata_loading']
    assert not state['images_prefetching']


@pytest.mark.asyncio
async def test_metadata_progress_within_phase_range():
    state = LoadingState()
    state.set_metadata_loading(True, 4)

    await state.increment_metadata("A")
    await state.increment_metadata("B")

    snapshot = state.to_dict()
    assert snapshot['status'] == 'metadata'
    assert snapshot['metadata_done'] == 2
    assert snapshot['current_game'] == "B"
    assert snapshot['progress_percent'] == 45


@pytest.mark.asyncio
async def test_images_progress_and_completion():
    state = LoadingState()
    state.set_images_prefetching(True, 2)
    await state.increment_images("A")
    assert state.to_dict()['progress_percent'] == 82

    state.finish()
    assert state.status == 'images'  # still prefetching

    state.set_images_prefetching(False)
    state.finish()
    assert state.to_dict()['status'] == 'complete'
    assert state.to_dict()['progress_percent'] == 100


def test_listeners_fire_on_change_only():
    state = LoadingState()
    calls = []
    state.add_listener(lambda name, value: calls.append((name, value)))

    state.set_scanning(True)
    state.set_scanning(True)
    state.set_scanning(False)

    assert calls == [('scan_in_progress', True), ('scan_in_progress', False)]


def test_failing_listener_does_not_break_updates():
    state = LoadingState()

    def broken(name, value):
        raise RuntimeError("ui gone")

    state.add_listener(broken)
    state.set_metadata_loading(True, 1)
    assert state.metadata_loading is True


def test_finish_with_error():
    state = LoadingState()
    state.finish("scan_in_progress")
    assert state.to_dict()['status'] == 'error'
    assert state.to_dict()['error'] == "scan_in_progress"
