import asyncio
import json

import httpx
import pytest

from conftest import json_error
from indexer_console.errors import InvalidTransition
from indexer_console.models import CheckStatus, RowState


async def wait_for_state(row, state, timeout=1.0):
    async def poll():
        while row.state != state:
            await asyncio.sleep(0)
    await asyncio.wait_for(poll(), timeout)


ACTION_PATHS = {
    "test": ("GET", "/xhr/indexers/example/test", RowState.TESTING),
    "disable": ("PATCH", "/xhr/indexers/example/config", RowState.DISABLING),
    "search": ("GET", "/torznab/example/api", RowState.SEARCHING),
    "edit": ("GET", "/xhr/indexers/example/config", RowState.EDITING),
}


def start(row, action):
    if action == "test":
        return row.test()
    if action == "disable":
        return row.disable()
    if action == "search":
        return row.search("foo")
    return row.open_editor()


@pytest.mark.parametrize("active", list(ACTION_PATHS))
async def test_active_row_rejects_every_other_action(logged_in, backend, active):
    row = logged_in.row("example")
    method, path, state = ACTION_PATHS[active]
    gate = backend.hold(method, path)

    task = asyncio.create_task(start(row, active))
    await wait_for_state(row, state)
    assert row.available_actions() == []

    for other in ACTION_PATHS:
        coro = start(row, other)
        with pytest.raises(InvalidTransition):
            await coro
    assert row.state == state

    gate.set()
    await task
    if active == "edit":
        row.cancel_editor()
    assert row.state == RowState.IDLE
    assert row.available_actions() == ["edit", "test", "disable", "search"]


async def test_exclusion_is_per_row(logged_in, backend):
    gate = backend.hold("GET", "/xhr/indexers/example/test")
    example, other = logged_in.row("example"), logged_in.row("other")

    task = asyncio.create_task(example.test())
    await wait_for_state(example, RowState.TESTING)

    fields = await other.open_editor()
    assert other.state == RowState.EDITING
    assert [f.name for f in fields] == ["url", "email", "cookie"]

    gate.set()
    await task
    assert example.state == RowState.IDLE


async def test_failed_test_is_row_local(logged_in, backend):
    backend.override("GET", "/xhr/indexers/example/test", httpx.Response(200, json={"ok": False, "error": "timeout"}))
    row = logged_in.row("example")

    result = await row.test()

    assert not result.ok
    assert row.status == CheckStatus.FAILED
    assert row.status_error == "timeout"
    assert row.state == RowState.IDLE
    assert not logged_in.banner.visible
    assert logged_in.registry.is_enabled("example")


async def test_status_shows_testing_then_ok(logged_in, backend):
    gate = backend.hold("GET", "/xhr/indexers/example/test")
    row = logged_in.row("example")
    assert row.status is None

    task = asyncio.create_task(row.test())
    await wait_for_state(row, RowState.TESTING)
    assert row.status == CheckStatus.TESTING

    gate.set()
    await task
    assert row.status == CheckStatus.OK
    assert row.to_dict()["status"] == "OK"


async def test_edit_round_trip_saves_patch(logged_in, backend):
    row = logged_in.row("example")

    fields = await row.open_editor()
    assert {f.name: f.value for f in fields} == {
        "url": "https://example.org/", "username": "alice", "password": "pw",
    }

    assert await row.save_editor({"username": "bob"})

    patch = json.loads(backend.find("PATCH", "/xhr/indexers/example/config")[0].content)
    assert patch == {"url": "https://example.org/", "username": "bob", "password": "pw", "enabled": "true"}
    assert row.state == RowState.IDLE
    assert row.form is None


async def test_save_config_for_new_indexer_enables_it(logged_in, backend):
    await logged_in.add_indexer("other")
    row = logged_in.row("other")
    assert row.state == RowState.EDITING

    assert await row.save_editor({"email": "me@x", "url": "http://x"})

    assert logged_in.registry.is_enabled("other")
    assert [r.indexer_id for r in logged_in.enabled_rows()] == ["example", "other"]
    assert [i.id for i in logged_in.addable_indexers()] == ["bare"]


async def test_failed_save_shows_banner_and_rolls_back(logged_in, backend):
    backend.override("PATCH", "/xhr/indexers/other/config", json_error(500, "cannot write config"))
    row = logged_in.row("other")
    await row.open_editor()

    assert not await row.save_editor({"url": "http://x"})

    assert logged_in.banner.visible
    assert logged_in.banner.message == "cannot write config"
    assert logged_in.banner.scope == "whilst saving Other"
    assert not logged_in.registry.is_enabled("other")
    assert row.state == RowState.IDLE


async def test_open_editor_failure_returns_to_idle(logged_in, backend):
    backend.override("GET", "/xhr/indexers/example/config", json_error(500, "boom"))
    row = logged_in.row("example")

    assert await row.open_editor() is None
    assert row.state == RowState.IDLE
    assert logged_in.banner.scope == "whilst loading config for Example"


async def test_cancel_editor_discards_form(logged_in, backend):
    row = logged_in.row("example")
    await row.open_editor()
    row.cancel_editor()

    assert row.state == RowState.IDLE
    assert row.form is None
    assert backend.find("PATCH", "/xhr/indexers/example/config") == []


async def test_cannot_cancel_while_saving(logged_in, backend):
    gate = backend.hold("PATCH", "/xhr/indexers/example/config")
    row = logged_in.row("example")
    await row.open_editor()

    task = asyncio.create_task(row.save_editor())
    await asyncio.sleep(0.01)
    with pytest.raises(InvalidTransition):
        row.cancel_editor()
    with pytest.raises(InvalidTransition):
        await row.save_editor()

    gate.set()
    assert await task
    assert row.state == RowState.IDLE


async def test_save_without_open_form_is_rejected(logged_in):
    with pytest.raises(InvalidTransition):
        await logged_in.row("example").save_editor()


async def test_disable_failure_shows_banner(logged_in, backend):
    backend.override("PATCH", "/xhr/indexers/example/config", json_error(500, "read-only config"))
    row = logged_in.row("example")

    assert not await row.disable()

    assert row.state == RowState.IDLE
    assert logged_in.banner.text == "Error whilst disabling Example: read-only config"
    assert logged_in.registry.is_enabled("example")


async def test_disable_moves_row_out_of_table(logged_in):
    assert await logged_in.row("example").disable()
    assert logged_in.enabled_rows() == []
    assert logged_in.row("example") is not None


async def test_search_keeps_previous_results_on_failure(logged_in, backend):
    row = logged_in.row("example")
    results = await row.search("foo")
    assert len(results) == 2

    backend.override("GET", "/torznab/example/api", json_error(500, "indexer down"))
    assert await row.search("bar") == results
    assert row.state == RowState.IDLE
    assert logged_in.banner.scope == "whilst searching Example"


async def test_reload_updates_row_reference(logged_in, backend):
    backend.indexers[0]["name"] = "Example (renamed)"
    await logged_in.registry.load_indexers()
    assert logged_in.row("example").indexer.name == "Example (renamed)"


async def test_reload_drops_rows_of_removed_indexers(logged_in, backend):
    backend.indexers = [i for i in backend.indexers if i["id"] != "bare"]
    await logged_in.registry.load_indexers()
    assert logged_in.row("bare") is None


async def test_add_unknown_indexer(logged_in):
    with pytest.raises(KeyError):
        await logged_in.add_indexer("missing")


async def test_rejected_token_during_action_returns_to_login(logged_in, backend):
    backend.override("GET", "/torznab/example/api", json_error(401, "Not Authorized"))
    row = logged_in.row("example")

    assert await row.search("foo") == []

    assert row.state == RowState.IDLE
    assert logged_in.banner.message == "Not Authorized"
    assert logged_in.initial_screen() == "login"
    assert logged_in.rows == {}


async def test_rejected_token_on_test_fails_row_and_logs_out(logged_in, backend):
    backend.override("GET", "/xhr/indexers/example/test", json_error(401, "Not Authorized"))
    row = logged_in.row("example")

    result = await row.test()

    assert not result.ok
    assert row.status == CheckStatus.FAILED
    assert not logged_in.session.has_token
    assert logged_in.initial_screen() == "login"


async def test_busy_row_of_removed_indexer_is_dropped_once_idle(logged_in, backend):
    gate = backend.hold("GET", "/xhr/indexers/other/test")
    row = logged_in.row("other")
    task = asyncio.create_task(row.test())
    await wait_for_state(row, RowState.TESTING)

    backend.indexers = [i for i in backend.indexers if i["id"] != "other"]
    await logged_in.registry.load_indexers()
    assert logged_in.row("other") is row

    gate.set()
    await task
    assert logged_in.row("other") is None
