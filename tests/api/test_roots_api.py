from __future__ import annotations

from typing import Iterator

import pytest

import api
from api import roots as api_roots


@pytest.fixture()
def installed(manager) -> Iterator[api.RootManager]:
    previous = api.set_manager(manager)
    yield manager
    api.set_manager(previous)


def test_public_names_exported() -> None:
    for name in ("h", "Ref", "use_frame", "use_resource", "render", "unmount", "run"):
        assert name in api.__all__
        assert hasattr(api, name)


def test_module_render_and_unmount_use_installed_manager(installed, surface, renderers) -> None:
    state = api.render(api.h("group", name="root"), surface)
    assert api.get_manager() is installed
    assert installed.get_state(surface) is state
    assert state.scene.children[0].name == "root"

    api.unmount(surface)
    assert not installed.is_mounted(surface)
    assert renderers[0].released


def test_unmount_without_manager_is_noop(surface) -> None:
    previous = api.set_manager(None)
    try:
        api.unmount(surface)
        assert api_roots._manager is None
    finally:
        api.set_manager(previous)


def test_close_manager_closes_and_forgets(renderer_factory, scheduler, surface) -> None:
    manager = api.RootManager(renderer_factory, scheduler=scheduler, resource_workers=1)
    previous = api.set_manager(manager)
    try:
        api.render(api.h("group"), surface)
        api.close_manager()
        assert api_roots._manager is None
        assert len(manager) == 0
        with pytest.raises(RuntimeError):
            manager.render(api.h("group"), surface)
    finally:
        api.set_manager(previous)
