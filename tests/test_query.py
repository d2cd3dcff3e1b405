"""
Tests for the filter grammar, orderings and memoised views.
"""

import pytest

from tabdo.core.exceptions import InvalidQueryError
from tabdo.core.query import (
    All,
    And,
    HasTag,
    IsComplete,
    Not,
    Or,
    Ordering,
    Query,
    format_filter,
    is_incomplete,
    lacks_tag,
    parse_filter,
    required_tags,
)
from tabdo.core.tabs import Tab
from tabdo.core.task_list import TaskList


@pytest.fixture
def tasks():
    task_list = TaskList()
    task_list.add("buy milk", ["home"])
    task_list.add("file taxes", ["admin"])
    task_list.add("fix fence", ["home", "garden"])
    task_list.add("call bank", ["admin", "home"])
    return task_list


def summaries(query, task_list):
    return [task.summary for task in query.view(task_list)]


def test_parse_basic_terms(tasks):
    home = tasks.tags.find("home").id
    assert parse_filter("", tasks.tags) == All()
    assert parse_filter("all", tasks.tags) == All()
    assert parse_filter("*", tasks.tags) == All()
    assert parse_filter("#home", tasks.tags) == HasTag(home)
    assert parse_filter("done", tasks.tags) == IsComplete()
    assert parse_filter("TODO", tasks.tags) == Not(IsComplete())
    assert parse_filter("!#home", tasks.tags) == Not(HasTag(home))


def test_and_binds_tighter_than_or(tasks):
    home = tasks.tags.find("home").id
    admin = tasks.tags.find("admin").id
    predicate = parse_filter("#admin | #home & done", tasks.tags)
    assert predicate == Or((HasTag(admin), And((HasTag(home), IsComplete()))))


def test_nested_operators_are_flattened(tasks):
    predicate = parse_filter("#home & (#admin & #garden)", tasks.tags)
    assert isinstance(predicate, And)
    assert len(predicate.operands) == 3


def test_format_is_canonical_and_parses_back(tasks):
    for text in ["all", "#home", "todo", "!#home", "#home & todo",
                 "(#home | #admin) & done", "#home | #admin & !done", "!(#home | #admin)"]:
        predicate = parse_filter(text, tasks.tags)
        formatted = format_filter(predicate, tasks.tags)
        assert parse_filter(formatted, tasks.tags) == predicate
    assert format_filter(parse_filter("( #home|#admin )&todo", tasks.tags), tasks.tags) \
        == "(#home | #admin) & todo"


@pytest.mark.parametrize("text", ["#missing", "(#home", "#home &", "banana", "#home )", "#"])
def test_invalid_filters_raise(tasks, text):
    with pytest.raises(InvalidQueryError):
        parse_filter(text, tasks.tags)


@pytest.mark.parametrize("text", ["!" * 5000 + "all", "(" * 3000 + "all" + ")" * 3000])
def test_deep_nesting_is_rejected(tasks, text):
    with pytest.raises(InvalidQueryError, match="nested deeper"):
        parse_filter(text, tasks.tags)


def test_moderate_nesting_parses(tasks):
    text = "!" * 10 + "(" * 20 + "#home" + ")" * 20
    assert parse_filter(text, tasks.tags) == parse_filter("!" * 10 + "#home", tasks.tags)


def test_views_follow_the_live_list(tasks):
    query = Query.parse("#home & todo", tasks.tags)
    assert summaries(query, tasks) == ["buy milk", "fix fence", "call bank"]

    milk = tasks.ids()[0]
    tasks.toggle_complete(milk)
    assert summaries(query, tasks) == ["fix fence", "call bank"]


def test_evaluation_is_deterministic(tasks):
    query = Query.parse("#home | #admin", tasks.tags, Ordering.ALPHABETICAL)
    first = query.evaluate(tasks)
    second = query.evaluate(tasks)
    assert [t.id for t in first] == [t.id for t in second]
    assert first == second


def test_orderings(tasks):
    query = Query.all()
    assert summaries(query, tasks) == ["buy milk", "file taxes", "fix fence", "call bank"]

    query.ordering = Ordering.ALPHABETICAL
    assert summaries(query, tasks) == ["buy milk", "call bank", "file taxes", "fix fence"]

    tasks.toggle_complete(tasks.ids()[0])
    query.ordering = Ordering.COMPLETION
    assert summaries(query, tasks) == ["file taxes", "fix fence", "call bank", "buy milk"]

    assert Ordering.LIST.next() is Ordering.ALPHABETICAL
    assert Ordering.COMPLETION.next() is Ordering.LIST


def test_changing_the_query_invalidates_the_cache(tasks):
    query = Query.all()
    assert len(query.view(tasks)) == 4
    revision = query.revision
    query.predicate = parse_filter("#admin", tasks.tags)
    assert query.revision == revision + 1
    assert summaries(query, tasks) == ["file taxes", "call bank"]


def test_queries_survive_tag_renames(tasks):
    query = Query.parse("#home", tasks.tags)
    tasks.rename_tag(tasks.tags.find("home").id, "house")
    assert len(query.view(tasks)) == 3
    assert query.describe(tasks.tags) == "#house"


def test_required_tags(tasks):
    home = tasks.tags.find("home").id
    garden = tasks.tags.find("garden").id
    assert required_tags(parse_filter("#home", tasks.tags)) == {home}
    assert required_tags(parse_filter("#home & #garden & todo", tasks.tags)) == {home, garden}
    assert required_tags(parse_filter("#home | #garden", tasks.tags)) == set()
    assert required_tags(parse_filter("!#home", tasks.tags)) == set()


def test_query_records(tasks):
    query = Query.parse("#home & todo", tasks.tags, Ordering.COMPLETION)
    record = query.to_record(tasks.tags)
    assert record == {"filter": "#home & todo", "order": "completion"}
    assert Query.from_record(record, tasks.tags) == query

    assert Query.from_record(None, tasks.tags) == Query.all()
    assert Query.from_record("#admin", tasks.tags) == Query.parse("#admin", tasks.tags)
    with pytest.raises(InvalidQueryError):
        Query.from_record({"filter": "all", "order": "random"}, tasks.tags)
    with pytest.raises(InvalidQueryError):
        Query.from_record(["all"], tasks.tags)


def test_named_constructors_match_parsed_text(tasks):
    garden = tasks.tags.find("garden").id
    assert lacks_tag(garden) == parse_filter("!#garden", tasks.tags)
    assert is_incomplete() == parse_filter("todo", tasks.tags)

    query = Query(And((lacks_tag(garden), is_incomplete())))
    assert summaries(query, tasks) == ["buy milk", "file taxes", "call bank"]


def test_completed_task_leaves_todo_tab():
    task_list = TaskList()
    a = task_list.add("A", ["home"])
    task_list.add("B", ["work"])

    tab = Tab("home", Query.parse("#home", task_list.tags))
    assert tab.view(task_list).ids() == [a]

    task_list.toggle_complete(a)
    tab.set_query(Query.parse("todo & #home", task_list.tags))
    assert tab.view(task_list).ids() == []
    assert tab.resolve(task_list) is None
