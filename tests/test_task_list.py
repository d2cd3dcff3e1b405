"""
Tests for the task list and the tag arena.
"""

import random

import pytest

from tabdo.core.exceptions import InvalidInputError, TaskNotFoundError, TagNotFoundError
from tabdo.core.models import Task, TagArena, validate_tag_name
from tabdo.core.task_list import TaskList


def test_add_returns_usable_ids():
    """Ids from add() work immediately for update() and remove()."""
    tasks = TaskList()
    first = tasks.add("Write report")
    second = tasks.add("Review report", ["work"])

    assert first != second
    tasks.update(first, lambda t: setattr(t, "summary", "Write final report"))
    assert tasks.get(first).summary == "Write final report"
    assert tasks.remove(second).summary == "Review report"
    assert tasks.ids() == [first]


def test_ids_stay_unique_under_random_operations():
    rng = random.Random(1234)
    tasks = TaskList()
    live = []
    for step in range(300):
        choice = rng.random()
        if choice < 0.5 or not live:
            live.append(tasks.add(f"task {step}"))
        elif choice < 0.8:
            victim = rng.choice(live)
            tasks.remove(victim)
            live.remove(victim)
        else:
            target = rng.choice(live)
            tasks.update(target, lambda t: setattr(t, "complete", not t.complete))

        ids = tasks.ids()
        assert len(ids) == len(set(ids))
        assert sorted(ids) == sorted(live)


def test_removed_ids_are_not_reused():
    tasks = TaskList()
    first = tasks.add("one")
    tasks.remove(first)
    assert tasks.add("two") != first


def test_remove_absent_id_is_a_no_op():
    tasks = TaskList()
    task_id = tasks.add("only")
    generation = tasks.generation

    assert tasks.remove(task_id + 100) is None
    assert tasks.generation == generation
    assert len(tasks) == 1


def test_update_absent_id_raises():
    tasks = TaskList()
    with pytest.raises(TaskNotFoundError):
        tasks.update(42, lambda t: None)


def test_update_is_all_or_nothing():
    tasks = TaskList()
    task_id = tasks.add("Keep me", ["home"])

    def broken(task):
        task.summary = "changed"
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        tasks.update(task_id, broken)
    assert tasks.get(task_id).summary == "Keep me"

    with pytest.raises(InvalidInputError):
        tasks.update(task_id, lambda t: setattr(t, "summary", "   "))
    assert tasks.get(task_id).summary == "Keep me"


def test_summary_validation():
    tasks = TaskList()
    with pytest.raises(InvalidInputError):
        tasks.add("")
    with pytest.raises(InvalidInputError):
        tasks.add("two\nlines")
    assert tasks.get(tasks.add("  padded  ")).summary == "padded"


def test_mutations_mark_dirty():
    tasks = TaskList()
    assert not tasks.dirty
    task_id = tasks.add("x")
    assert tasks.dirty
    tasks.mark_clean()
    tasks.toggle_complete(task_id)
    assert tasks.dirty


def test_set_tags_validates_before_interning():
    tasks = TaskList()
    task_id = tasks.add("Tagged", ["home"])

    with pytest.raises(InvalidInputError):
        tasks.set_tags(task_id, ["fresh", "bad|name"])
    assert tasks.tags.find("fresh") is None
    assert tasks.get(task_id).tag_names(tasks.tags) == ["home"]

    tasks.set_tags(task_id, ["#errands", "home"])
    assert tasks.get(task_id).tag_names(tasks.tags) == ["errands", "home"]


def test_move_clamps_at_both_ends():
    tasks = TaskList()
    a, b, c = tasks.add("a"), tasks.add("b"), tasks.add("c")

    assert tasks.move(a, 10)
    assert tasks.ids() == [b, c, a]
    assert not tasks.move(a, 1)
    assert tasks.move(a, -1)
    assert tasks.ids() == [b, a, c]
    assert tasks.move(c, -99)
    assert tasks.ids() == [c, b, a]


def test_insert_keeps_id_and_reserves_it():
    tasks = TaskList()
    tasks.insert(Task(id=10, summary="loaded"))
    assert tasks.add("new") == 11

    with pytest.raises(InvalidInputError):
        tasks.insert(Task(id=10, summary="duplicate"))


def test_tag_rename_is_visible_everywhere():
    tasks = TaskList()
    first = tasks.add("one", ["home"])
    second = tasks.add("two", ["home", "garden"])
    tag = tasks.tags.find("home")

    tasks.rename_tag(tag.id, "house")

    assert tasks.get(first).tag_names(tasks.tags) == ["house"]
    assert tasks.get(second).tag_names(tasks.tags) == ["garden", "house"]
    assert tasks.tags.find("home") is None


def test_tag_arena_rules():
    arena = TagArena()
    home = arena.intern("home")
    assert arena.intern("#home") is home
    assert len(arena) == 1

    other = arena.intern("work")
    with pytest.raises(InvalidInputError):
        arena.rename(other.id, "home")
    with pytest.raises(TagNotFoundError):
        arena.get(99)

    for bad in ["", "two words", "a&b", "(x)", "!no"]:
        with pytest.raises(InvalidInputError):
            validate_tag_name(bad)
