"""
Tests for tab cursors: id tracking, fallbacks, clamping and scrolling.
"""

import pytest

from tabdo.core.exceptions import InvalidInputError, InvalidQueryError
from tabdo.core.query import Ordering, Query
from tabdo.core.tabs import Tab
from tabdo.core.task_list import TaskList


@pytest.fixture
def tasks():
    task_list = TaskList()
    for name in ["alpha", "bravo", "charlie", "delta"]:
        task_list.add(name)
    return task_list


def selected_summary(tab, task_list):
    task = tab.selected_task(task_list)
    return task.summary if task else None


def test_fresh_tab_selects_first_task(tasks):
    tab = Tab("all")
    assert tab.resolve(tasks) == 0
    assert selected_summary(tab, tasks) == "alpha"


def test_empty_view_has_no_selection():
    tab = Tab("all")
    assert tab.resolve(TaskList()) is None
    assert tab.selected_id is None


def test_cursor_movement_clamps(tasks):
    tab = Tab("all")
    tab.resolve(tasks)
    assert not tab.select_prev(tasks)
    assert selected_summary(tab, tasks) == "alpha"

    for _ in range(10):
        tab.select_next(tasks)
    assert selected_summary(tab, tasks) == "delta"
    assert not tab.select_next(tasks)

    tab.select_first(tasks)
    assert selected_summary(tab, tasks) == "alpha"
    tab.select_last(tasks)
    assert selected_summary(tab, tasks) == "delta"


def test_selection_follows_id_across_reordering(tasks):
    tab = Tab("all")
    tab.resolve(tasks)
    tab.select_next(tasks)  # bravo
    bravo = tab.selected_id

    tasks.move(bravo, 2)
    assert tab.resolve(tasks) == 3
    assert tab.selected_id == bravo

    tab.query.ordering = Ordering.ALPHABETICAL
    assert tab.resolve(tasks) == 1
    assert tab.selected_id == bravo


def test_removed_selection_falls_back_to_same_index(tasks):
    tab = Tab("all")
    tab.resolve(tasks)
    tab.select_next(tasks)  # bravo, index 1
    tasks.remove(tab.selected_id)
    assert tab.resolve(tasks) == 1
    assert selected_summary(tab, tasks) == "charlie"


def test_removed_last_selection_falls_back_to_last(tasks):
    tab = Tab("all")
    tab.select_last(tasks)
    tasks.remove(tab.selected_id)
    assert tab.resolve(tasks) == 2
    assert selected_summary(tab, tasks) == "charlie"


def test_cursor_never_out_of_range_after_mutations(tasks):
    tab = Tab("all")
    tab.select_last(tasks)
    for task_id in list(tasks.ids()):
        tasks.remove(task_id)
        index = tab.resolve(tasks)
        if len(tasks):
            assert 0 <= index < len(tasks)
        else:
            assert index is None


def test_select_only_matching_tasks(tasks):
    tasks.set_tags(tasks.ids()[0], ["keep"])
    tab = Tab("kept", Query.parse("#keep", tasks.tags))
    assert tab.select(tasks, tasks.ids()[0])
    assert not tab.select(tasks, tasks.ids()[1])


def test_scroll_window_slides():
    tab = Tab("all")
    assert tab.scroll(3, 0) == 0
    assert tab.scroll(3, 2) == 0
    assert tab.scroll(3, 5) == 3
    assert tab.scroll(3, 4) == 3
    assert tab.scroll(3, 1) == 1
    assert tab.scroll(3, None) == 0


def test_tab_names():
    with pytest.raises(InvalidInputError):
        Tab("   ")
    tab = Tab("work")
    tab.rename(" office ")
    assert tab.name == "office"


def test_tab_records(tasks):
    tasks.set_tags(tasks.ids()[1], ["x"])
    tab = Tab("x", Query.parse("#x", tasks.tags, Ordering.ALPHABETICAL))
    tab.resolve(tasks)
    record = tab.to_record(tasks.tags)
    assert record == {
        "name": "x",
        "query": {"filter": "#x", "order": "alpha"},
        "selected": tasks.ids()[1],
    }

    restored = Tab.from_record(record, tasks.tags)
    assert restored.name == "x"
    assert restored.query == tab.query
    assert restored.selected_id == tab.selected_id

    with pytest.raises(InvalidQueryError):
        Tab.from_record({"name": "bad", "query": {"filter": "#nope"}}, tasks.tags)
