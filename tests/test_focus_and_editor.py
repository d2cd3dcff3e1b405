"""
Tests for the focus tree and the in-place editor.
"""

import pytest

from tabdo.ui.editor import EditPurpose, EditorState, InPlaceEditor
from tabdo.ui.focus import FocusTree, Widget, WidgetKind
from tabdo.ui.keymaps import action_for


def build_tree():
    tree = FocusTree()
    bar = tree.attach(tree.root, Widget(WidgetKind.TAB_BAR))
    first = tree.attach(bar, Widget(WidgetKind.TASK_LIST, "first"))
    second = tree.attach(bar, Widget(WidgetKind.TASK_LIST, "second"))
    return tree, bar, first, second


def test_focus_path():
    tree, bar, first, _ = build_tree()
    assert tree.focused is tree.root
    tree.focus(first)
    assert tree.path() == [tree.root, bar, first]


def test_cannot_focus_detached_widget():
    tree, _, first, _ = build_tree()
    tree.detach(first)
    with pytest.raises(ValueError):
        tree.focus(first)
    with pytest.raises(ValueError):
        tree.focus(Widget(WidgetKind.DIALOG))


def test_detaching_focused_subtree_moves_focus_to_parent():
    tree, bar, first, _ = build_tree()
    editor = tree.attach(first, Widget(WidgetKind.EDITOR))
    tree.focus(editor)

    tree.detach(editor)
    assert tree.focused is first
    assert not tree.is_reachable(editor)

    tree.focus(first)
    tree.detach(first)
    assert tree.focused is bar


def test_detaching_can_prefer_a_sibling():
    tree, bar, first, second = build_tree()
    tree.focus(first)
    tree.detach(first, prefer_sibling=True)
    assert tree.focused is second

    tree.detach(second, prefer_sibling=True)
    assert tree.focused is bar


def test_detaching_an_ancestor_of_the_focus():
    tree, bar, first, _ = build_tree()
    dialog = tree.attach(first, Widget(WidgetKind.DIALOG))
    tree.focus(dialog)
    tree.detach(first)
    assert tree.focused is bar
    assert tree.is_reachable(tree.focused)


def test_root_cannot_be_detached():
    tree = FocusTree()
    with pytest.raises(ValueError):
        tree.detach(tree.root)


def test_keys_are_not_shared_between_widgets():
    assert action_for(WidgetKind.TASK_LIST, "d") == "delete_task"
    assert action_for(WidgetKind.TAB_BAR, "d") is None
    assert action_for(WidgetKind.TAB_BAR, "D") == "delete_tab"
    assert action_for(WidgetKind.DIALOG, "q") is None
    for kind in (WidgetKind.TASK_LIST, WidgetKind.TAB_BAR):
        assert action_for(kind, "q") == "quit"
        assert action_for(kind, "?") == "help"


def type_text(editor, text):
    for char in text:
        editor.handle_key(char)


def test_editor_insert_and_commit():
    editor = InPlaceEditor(EditPurpose.ADD_TASK)
    type_text(editor, "foo")
    for _ in range(3):
        editor.handle_key("backspace")
    type_text(editor, "baz")
    editor.handle_key("space")
    type_text(editor, "qux")
    assert editor.handle_key("enter")
    assert editor.state is EditorState.COMMITTED
    assert editor.text == "baz qux"
    assert not editor.handle_key("x")


def test_editor_cursor_motion():
    editor = InPlaceEditor(EditPurpose.EDIT_SUMMARY, "hello world", target=1)
    assert editor.cursor == len("hello world")
    editor.handle_key("home")
    editor.handle_key("right")
    editor.handle_key("delete")
    assert editor.text == "hllo world"
    editor.handle_key("c-e")
    editor.handle_key("c-w")
    assert editor.text == "hllo "
    editor.handle_key("left")
    editor.handle_key("c-u")
    assert editor.text == " "
    editor.handle_key("escape")
    assert editor.state is EditorState.CANCELLED


def test_editor_ignores_unknown_keys_and_flattens_paste():
    editor = InPlaceEditor(EditPurpose.EDIT_NOTES)
    assert not editor.handle_key("f5")
    editor.insert("line one\nline two")
    assert editor.text == "line one line two"
