from __future__ import annotations

import pytest

from regionmap.culler import RenderCuller
from regionmap.scheduler import FrameScheduler
from regionmap.store import ViewStateStore


@pytest.fixture
def rig(repository):
    scheduler = FrameScheduler()
    store = ViewStateStore(scheduler=scheduler)
    culler = RenderCuller(store, scheduler, repository.districts, exit_delay_ms=800)
    return scheduler, store, culler


def _names(culler: RenderCuller) -> list[str]:
    return sorted(f.name for f in culler.visible_districts())


def test_nothing_mounted_at_default(rig) -> None:
    _, _, culler = rig
    assert culler.rendering_scope is None
    assert culler.visible_districts() == ()


def test_scope_follows_selection(rig, repository) -> None:
    scheduler, store, culler = rig
    store.select_state("Meghalaya", repository.find_state("Meghalaya"))
    scheduler.tick()
    assert culler.rendering_scope == "Meghalaya"
    assert _names(culler) == ["East Khasi Hills", "West Garo Hills"]


def test_corrected_parent_names_are_matched(rig, repository) -> None:
    scheduler, store, culler = rig
    store.select_state("Arunachal Pradesh", repository.find_state("Arunachal Pradesh"))
    scheduler.tick()
    assert _names(culler) == ["Tawang"]


def test_children_linger_for_exit_delay(rig, repository) -> None:
    scheduler, store, culler = rig
    scopes: list[str | None] = []
    culler.subscribe(scopes.append)
    store.select_state("Meghalaya", repository.find_state("Meghalaya"))
    scheduler.tick()

    store.go_back()
    scheduler.tick()
    assert store.state.selected_state is None
    assert culler.exit_pending

    scheduler.advance(700)
    assert _names(culler) == ["East Khasi Hills", "West Garo Hills"]

    scheduler.advance(200)
    assert culler.rendering_scope is None
    assert culler.visible_districts() == ()
    assert scopes == ["Meghalaya", None]


def test_reselect_within_window_cancels_removal(rig, repository) -> None:
    scheduler, store, culler = rig
    scopes: list[str | None] = []
    culler.subscribe(scopes.append)
    store.select_state("Meghalaya", repository.find_state("Meghalaya"))
    scheduler.tick()
    store.go_back()
    scheduler.tick()

    scheduler.advance(400)
    store.select_state("Meghalaya", repository.find_state("Meghalaya"))
    scheduler.tick()
    assert not culler.exit_pending

    scheduler.advance(2000)
    assert culler.rendering_scope == "Meghalaya"
    assert scopes == ["Meghalaya"]


def test_selecting_another_state_switches_immediately(rig, repository) -> None:
    scheduler, store, culler = rig
    store.select_state("Meghalaya", repository.find_state("Meghalaya"))
    scheduler.tick()
    store.go_back()
    scheduler.tick()
    store.select_state("Assam", repository.find_state("Assam"))
    scheduler.tick()
    assert culler.rendering_scope == "Assam"
    assert _names(culler) == ["Kamrup"]
    scheduler.advance(2000)
    assert culler.rendering_scope == "Assam"


def test_closed_culler_ignores_changes(rig, repository) -> None:
    scheduler, store, culler = rig
    culler.close()
    store.select_state("Assam", repository.find_state("Assam"))
    scheduler.tick()
    assert culler.rendering_scope is None
