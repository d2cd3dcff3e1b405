"""
FILE: tabdo/core/query.py
PURPOSE: Filter + ordering rules producing live views over the task list
EXPORTS:
  - Predicate classes: All, HasTag, IsComplete, Not, And, Or
  - Ordering (enum)
  - parse_filter(text, arena) -> Predicate
  - format_filter(predicate, arena) -> str
  - Query (class)
  - View (class)
DEPENDENCIES:
  - re (tokenizer)
  - dataclasses, enum (stdlib)
  - tabdo.core.models (Task, TagArena)
  - tabdo.core.exceptions (InvalidQueryError)
NOTES:
  - Filter grammar (version 1):
        expr   := term ("|" term)*
        term   := factor ("&" factor)*
        factor := "!" factor | "(" expr ")" | "#" NAME | "done" | "todo" | "all" | "*"
  - Predicates refer to tags by id, so renaming a tag never breaks a query
  - Views never copy task data; they hold references into the live list
  - Evaluation is lazy and memoised per (task list generation, query revision)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Set, Tuple

from .constants import (
    ORDER_LIST,
    ORDER_ALPHABETICAL,
    ORDER_COMPLETION,
    VALID_ORDERS,
    MAX_FILTER_DEPTH,
)
from .exceptions import InvalidQueryError
from .models import Task, TagArena


# --- Predicates ---


class Predicate:
    """Base class; subclasses are immutable and compare by value."""

    def matches(self, task: Task) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class All(Predicate):
    def matches(self, task: Task) -> bool:
        return True


@dataclass(frozen=True)
class HasTag(Predicate):
    tag_id: int

    def matches(self, task: Task) -> bool:
        return task.has_tag(self.tag_id)


@dataclass(frozen=True)
class IsComplete(Predicate):
    def matches(self, task: Task) -> bool:
        return task.complete


@dataclass(frozen=True)
class Not(Predicate):
    operand: Predicate

    def matches(self, task: Task) -> bool:
        return not self.operand.matches(task)


@dataclass(frozen=True)
class And(Predicate):
    operands: Tuple[Predicate, ...]

    def matches(self, task: Task) -> bool:
        return all(p.matches(task) for p in self.operands)


@dataclass(frozen=True)
class Or(Predicate):
    operands: Tuple[Predicate, ...]

    def matches(self, task: Task) -> bool:
        return any(p.matches(task) for p in self.operands)


def _combine(cls, operands: List[Predicate]) -> Predicate:
    """Build And/Or, flattening nested nodes of the same kind."""
    flat: List[Predicate] = []
    for operand in operands:
        if isinstance(operand, cls):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if len(flat) == 1:
        return flat[0]
    return cls(tuple(flat))


def lacks_tag(tag_id: int) -> Predicate:
    return Not(HasTag(tag_id))


def is_incomplete() -> Predicate:
    return Not(IsComplete())


# --- Filter text grammar ---


_TOKEN_RE = re.compile(
    r"\s*(?:(?P<op>[()&|!])|#(?P<tag>[^\s&|()!#]+)|(?P<word>[^\s&|()!#]+)|(?P<bad>\S))"
)

_KEYWORDS = {
    "all": All(),
    "*": All(),
    "done": IsComplete(),
    "todo": Not(IsComplete()),
}


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            break
        pos = match.end()
        if match.group("op"):
            tokens.append(("op", match.group("op")))
        elif match.group("tag"):
            tokens.append(("tag", match.group("tag")))
        elif match.group("word"):
            tokens.append(("word", match.group("word")))
        else:
            bad = match.group("bad")
            raise InvalidQueryError(f"Unexpected character '{bad}'", text)
    return tokens


class _Parser:
    """Recursive descent parser over the token list."""

    def __init__(self, text: str, arena: TagArena):
        self.text = text
        self.arena = arena
        self.tokens = _tokenize(text)
        self.pos = 0
        self.depth = 0

    def peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> Tuple[str, str]:
        token = self.peek()
        if token is None:
            raise InvalidQueryError("Unexpected end of filter", self.text)
        self.pos += 1
        return token

    def parse(self) -> Predicate:
        if not self.tokens:
            return All()
        predicate = self.expr()
        if self.peek() is not None:
            raise InvalidQueryError(f"Unexpected '{self.peek()[1]}'", self.text)
        return predicate

    def expr(self) -> Predicate:
        operands = [self.term()]
        while self.peek() == ("op", "|"):
            self.take()
            operands.append(self.term())
        return _combine(Or, operands)

    def term(self) -> Predicate:
        operands = [self.factor()]
        while self.peek() == ("op", "&"):
            self.take()
            operands.append(self.factor())
        return _combine(And, operands)

    def factor(self) -> Predicate:
        kind, value = self.take()
        if kind == "op":
            if value not in ("!", "("):
                raise InvalidQueryError(f"Unexpected '{value}'", self.text)
            self.depth += 1
            if self.depth > MAX_FILTER_DEPTH:
                raise InvalidQueryError(
                    f"Filter nested deeper than {MAX_FILTER_DEPTH} levels", self.text
                )
            try:
                return self.nested(value)
            finally:
                self.depth -= 1

        if kind == "tag":
            tag = self.arena.find(value)
            if tag is None:
                raise InvalidQueryError(f"Unknown tag '#{value}'", self.text)
            return HasTag(tag.id)

        keyword = _KEYWORDS.get(value.lower())
        if keyword is None:
            raise InvalidQueryError(
                f"Unknown word '{value}' (use #tag, done, todo or all)", self.text
            )
        return keyword

    def nested(self, opener: str) -> Predicate:
        if opener == "!":
            return Not(self.factor())
        inner = self.expr()
        if self.peek() != ("op", ")"):
            raise InvalidQueryError("Missing ')'", self.text)
        self.take()
        return inner


def parse_filter(text: str, arena: TagArena) -> Predicate:
    """
    Parse filter text into a predicate.

    Raises:
        InvalidQueryError: On syntax errors, unknown words or unknown tags
    """
    return _Parser(text or "", arena).parse()


_PREC_OR, _PREC_AND, _PREC_NOT = 1, 2, 3


def format_filter(predicate: Predicate, arena: TagArena, _prec: int = 0) -> str:
    """Canonical text for a predicate; parse_filter() reads it back unchanged."""
    if isinstance(predicate, All):
        return "all"
    if isinstance(predicate, HasTag):
        return "#" + arena.name_of(predicate.tag_id)
    if isinstance(predicate, IsComplete):
        return "done"
    if isinstance(predicate, Not):
        if isinstance(predicate.operand, IsComplete):
            return "todo"
        return "!" + format_filter(predicate.operand, arena, _PREC_NOT)
    if isinstance(predicate, And):
        text = " & ".join(format_filter(p, arena, _PREC_AND) for p in predicate.operands)
        return f"({text})" if _prec > _PREC_AND else text
    if isinstance(predicate, Or):
        text = " | ".join(format_filter(p, arena, _PREC_OR) for p in predicate.operands)
        return f"({text})" if _prec > _PREC_OR else text
    raise TypeError(f"Unknown predicate {predicate!r}")


def required_tags(predicate: Predicate) -> Set[int]:
    """
    Tags every matching task must carry.

    Only positive tags of a plain conjunction count; anything involving
    alternatives yields nothing.
    """
    if isinstance(predicate, HasTag):
        return {predicate.tag_id}
    if isinstance(predicate, And):
        return {p.tag_id for p in predicate.operands if isinstance(p, HasTag)}
    return set()


# --- Ordering ---


class Ordering(Enum):
    LIST = ORDER_LIST
    ALPHABETICAL = ORDER_ALPHABETICAL
    COMPLETION = ORDER_COMPLETION

    @classmethod
    def parse(cls, value: str) -> "Ordering":
        try:
            return cls(value)
        except ValueError:
            raise InvalidQueryError(
                f"Unknown ordering '{value}'. Must be one of: {', '.join(VALID_ORDERS)}"
            ) from None

    def next(self) -> "Ordering":
        members = list(Ordering)
        return members[(members.index(self) + 1) % len(members)]

    def sort(self, tasks: List[Task]) -> List[Task]:
        """Sort tasks already in list order; ties keep list order (stable sort)."""
        if self is Ordering.ALPHABETICAL:
            return sorted(tasks, key=lambda t: t.summary.casefold())
        if self is Ordering.COMPLETION:
            return sorted(tasks, key=lambda t: t.complete)
        return list(tasks)


# --- Query and View ---


class Query:
    """
    A predicate plus an ordering rule.

    Changing either bumps `revision`, which (together with the task list's
    generation) decides when a cached evaluation is stale.
    """

    def __init__(self, predicate: Optional[Predicate] = None, ordering: Ordering = Ordering.LIST):
        self._predicate = predicate if predicate is not None else All()
        self._ordering = ordering
        self.revision = 0
        self._cache_key = None
        self._cache: List[Task] = []

    def __repr__(self) -> str:
        return f"Query({self._predicate!r}, {self._ordering.value})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self._predicate == other._predicate and self._ordering == other._ordering

    @classmethod
    def all(cls) -> "Query":
        return cls(All(), Ordering.LIST)

    @classmethod
    def parse(cls, text: str, arena: TagArena, ordering: Ordering = Ordering.LIST) -> "Query":
        return cls(parse_filter(text, arena), ordering)

    @property
    def predicate(self) -> Predicate:
        return self._predicate

    @predicate.setter
    def predicate(self, predicate: Predicate) -> None:
        self._predicate = predicate
        self.revision += 1

    @property
    def ordering(self) -> Ordering:
        return self._ordering

    @ordering.setter
    def ordering(self, ordering: Ordering) -> None:
        self._ordering = ordering
        self.revision += 1

    def matches(self, task: Task) -> bool:
        return self._predicate.matches(task)

    def describe(self, arena: TagArena) -> str:
        return format_filter(self._predicate, arena)

    def evaluate(self, task_list) -> List[Task]:
        """
        Current output as task references.

        Re-runs only if the task list or the query changed since the last
        call; two calls without an intervening mutation return equal lists.
        """
        key = (id(task_list), task_list.generation, self.revision)
        if key != self._cache_key:
            matching = [task for task in task_list.iterate() if self._predicate.matches(task)]
            self._cache = self._ordering.sort(matching)
            self._cache_key = key
        return list(self._cache)

    def view(self, task_list) -> "View":
        return View(self, task_list)

    def to_record(self, arena: TagArena) -> dict:
        return {"filter": self.describe(arena), "order": self._ordering.value}

    @classmethod
    def from_record(cls, record, arena: TagArena) -> "Query":
        """
        Rebuild a query from its persisted form.

        Raises:
            InvalidQueryError: If the record is malformed or references
                an unknown tag or ordering
        """
        if record is None:
            return cls.all()
        if isinstance(record, str):
            record = {"filter": record}
        if not isinstance(record, dict):
            raise InvalidQueryError(f"Query must be an object, got {type(record).__name__}")

        text = record.get("filter", "")
        order = record.get("order", ORDER_LIST)
        if not isinstance(text, str) or not isinstance(order, str):
            raise InvalidQueryError("Query 'filter' and 'order' must be strings")
        return cls(parse_filter(text, arena), Ordering.parse(order))


class View:
    """
    Lazy, restartable, read-through sequence of tasks matching a query.

    Every iteration or index re-reads the live task list (through the query's
    memoised evaluation), so a View never goes stale.
    """

    def __init__(self, query: Query, task_list):
        self.query = query
        self.task_list = task_list

    def __iter__(self) -> Iterator[Task]:
        return iter(self.query.evaluate(self.task_list))

    def __len__(self) -> int:
        return len(self.query.evaluate(self.task_list))

    def __getitem__(self, index: int) -> Task:
        return self.query.evaluate(self.task_list)[index]

    def __bool__(self) -> bool:
        return len(self) > 0

    def ids(self) -> List[int]:
        return [task.id for task in self]

    def index_of(self, task_id: int) -> Optional[int]:
        for index, task in enumerate(self):
            if task.id == task_id:
                return index
        return None
