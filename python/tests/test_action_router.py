"""Tests for widget routing and the long-press timer."""

import asyncio

import pytest

from monitor_presets.events.action_router import (
    ActionRouter,
    Branch,
    Leaf,
    LongPressTimer,
    WidgetPath,
    build_tree
)
from monitor_presets.events.event_types import WidgetActionEvent


def widget(widget_id, action_type="released", value=""):
    return WidgetActionEvent.from_message({
        "WidgetId": widget_id,
        "Type": action_type,
        "Value": value
    })


class Recorder:
    def __init__(self):
        self.contexts = []

    async def __call__(self, context):
        self.contexts.append(context)


def test_widget_path_parse():
    path = WidgetPath.parse("dop~Presets~Select:Single~0:Room A")

    assert path.namespace == "dop"
    assert path.page == "Presets"
    assert path.action == "Select"
    assert path.sub_action == "Single"
    assert path.data == "0:Room A"


def test_widget_path_too_short():
    assert WidgetPath.parse("dop~Presets") is None


def test_build_tree():
    handler = Recorder()
    fallback = Recorder()

    tree = build_tree({"Maker": {"Matrix": {"Add": handler, "_default_": fallback}}})

    matrix = tree.get("Maker").get("Matrix")
    assert isinstance(matrix, Branch)
    assert isinstance(matrix.get("Add"), Leaf)
    assert matrix.default is fallback


def test_build_tree_rejects_values():
    with pytest.raises(TypeError):
        build_tree({"Maker": {"Matrix": 3}})


def test_leaf_receives_context():
    select = Recorder()
    router = ActionRouter(released=build_tree({"Presets": {"Select": select}}))

    handled = asyncio.run(router.dispatch(widget("dop~Presets~Select:Single~0:Room A", value="")))

    assert handled is True
    context = select.contexts[0]
    assert context.sub_action == "Single"
    assert context.data == "0:Room A"


def test_sub_action_child():
    add = Recorder()
    router = ActionRouter(released=build_tree({"Maker": {"Matrix": {"Add": add}}}))

    asyncio.run(router.dispatch(widget("dopm~Maker~Matrix:Add")))

    assert len(add.contexts) == 1


def test_unknown_sub_action_uses_default():
    add = Recorder()
    fallback = Recorder()
    router = ActionRouter(released=build_tree({"Maker": {"Matrix": {"Add": add, "_default_": fallback}}}))

    assert asyncio.run(router.dispatch(widget("dopm~Maker~Matrix:Swap"))) is True
    assert add.contexts == []
    assert fallback.contexts[0].sub_action == "Swap"


def test_unknown_sub_action_without_default_is_silent():
    add = Recorder()
    router = ActionRouter(released=build_tree({"Maker": {"Matrix": {"Add": add}}}))

    assert asyncio.run(router.dispatch(widget("dopm~Maker~Matrix:Swap"))) is False
    assert add.contexts == []


def test_unknown_page_and_namespace_are_ignored():
    select = Recorder()
    router = ActionRouter(released=build_tree({"Presets": {"Select": select}}))

    assert asyncio.run(router.dispatch(widget("dop~Settings~Select"))) is False
    assert asyncio.run(router.dispatch(widget("other~Presets~Select"))) is False
    assert select.contexts == []


def test_phases_use_separate_trees():
    pressed = Recorder()
    released = Recorder()
    router = ActionRouter(
        pressed=build_tree({"Presets": {"Select": pressed}}),
        released=build_tree({"Presets": {"Select": released}})
    )

    asyncio.run(router.dispatch(widget("dop~Presets~Select", "pressed")))
    asyncio.run(router.dispatch(widget("dop~Presets~Select", "clicked")))

    assert len(pressed.contexts) == 1
    assert released.contexts == []


def test_long_press_fires_after_delay():
    fired = []

    async def scenario():
        timer = LongPressTimer(delay=0.01)
        timer.arm(lambda: fired.append(True))
        assert timer.pending
        await asyncio.sleep(0.05)
        return timer

    timer = asyncio.run(scenario())

    assert fired == [True]
    assert not timer.pending


def test_release_cancels_long_press():
    fired = []

    async def scenario():
        timer = LongPressTimer(delay=0.05)
        timer.arm(lambda: fired.append(True))
        allowed = timer.release()
        await asyncio.sleep(0.1)
        return allowed

    assert asyncio.run(scenario()) is True
    assert fired == []


def test_release_suppressed_after_submenu():
    async def options():
        pass

    async def scenario():
        timer = LongPressTimer(delay=0.01, suppress_release=True)
        timer.arm(options)
        await asyncio.sleep(0.05)
        first = timer.release()
        second = timer.release()
        return first, second

    assert asyncio.run(scenario()) == (False, True)
