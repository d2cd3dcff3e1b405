"""
FILE: tabdo/core/models.py
PURPOSE: Domain models for tasks and tags
EXPORTS:
  - Tag (dataclass)
  - TagArena (owner of every tag)
  - Task (dataclass)
  - validate_tag_name(name) -> str
DEPENDENCIES:
  - dataclasses (stdlib)
  - typing (stdlib)
NOTES:
  - Tasks reference tags by id, never by value, so a rename is visible everywhere
  - Tag ids are process-lifetime integers and are not persisted
  - Task.to_record() gives the persisted and --json layout
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set

from .constants import TAG_FORBIDDEN_CHARS
from .exceptions import InvalidInputError, TagNotFoundError


def validate_tag_name(name: str) -> str:
    """
    Normalize and validate a tag name.

    Returns:
        The stripped name (a leading '#' is dropped)

    Raises:
        InvalidInputError: If the name is empty, contains whitespace or
            one of the characters reserved by the filter grammar
    """
    name = (name or "").strip()
    if name.startswith("#"):
        name = name[1:]
    if not name:
        raise InvalidInputError("Tag name cannot be empty")
    if any(ch.isspace() for ch in name):
        raise InvalidInputError(f"Tag name '{name}' cannot contain whitespace")
    bad = [ch for ch in name if ch in TAG_FORBIDDEN_CHARS]
    if bad:
        raise InvalidInputError(f"Tag name '{name}' cannot contain '{bad[0]}'")
    return name


@dataclass
class Tag:
    """A named label shared by any number of tasks."""

    id: int
    name: str


class TagArena:
    """
    Owns every Tag of a running instance.

    Tags are looked up by id (what tasks store) or by name (what users type).
    Names are unique; renaming goes through here so that every task holding
    the tag sees the new name at once.
    """

    def __init__(self):
        self._by_id: Dict[int, Tag] = {}
        self._by_name: Dict[str, int] = {}
        self._next_id = 1

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, tag_id: int) -> bool:
        return tag_id in self._by_id

    def intern(self, name: str) -> Tag:
        """Return the tag called `name`, creating it if needed."""
        name = validate_tag_name(name)
        tag_id = self._by_name.get(name)
        if tag_id is not None:
            return self._by_id[tag_id]

        tag = Tag(id=self._next_id, name=name)
        self._next_id += 1
        self._by_id[tag.id] = tag
        self._by_name[name] = tag.id
        return tag

    def get(self, tag_id: int) -> Tag:
        try:
            return self._by_id[tag_id]
        except KeyError:
            raise TagNotFoundError(tag_id) from None

    def find(self, name: str) -> Optional[Tag]:
        name = (name or "").strip().lstrip("#")
        tag_id = self._by_name.get(name)
        return self._by_id[tag_id] if tag_id is not None else None

    def name_of(self, tag_id: int) -> str:
        return self.get(tag_id).name

    def names(self) -> List[str]:
        """Tag names in creation order."""
        return [tag.name for tag in self._by_id.values()]

    def rename(self, tag_id: int, new_name: str) -> Tag:
        """
        Rename a tag in place.

        Raises:
            TagNotFoundError: If tag_id is unknown
            InvalidInputError: If new_name is invalid or already used by another tag
        """
        tag = self.get(tag_id)
        new_name = validate_tag_name(new_name)
        if new_name == tag.name:
            return tag

        existing = self._by_name.get(new_name)
        if existing is not None and existing != tag_id:
            raise InvalidInputError(f"Tag '{new_name}' already exists")

        del self._by_name[tag.name]
        tag.name = new_name
        self._by_name[new_name] = tag_id
        return tag


@dataclass
class Task:
    """A TODO item: summary, tag ids, completion flag and notes."""

    id: int
    summary: str
    tags: Set[int] = field(default_factory=set)
    complete: bool = False
    notes: str = ""

    def copy(self) -> "Task":
        """Independent snapshot (the tag set is copied, tag ids are shared)."""
        return Task(
            id=self.id,
            summary=self.summary,
            tags=set(self.tags),
            complete=self.complete,
            notes=self.notes,
        )

    def has_tag(self, tag_id: int) -> bool:
        return tag_id in self.tags

    def tag_names(self, arena: TagArena) -> List[str]:
        """Names of this task's tags, sorted for display."""
        return sorted(arena.name_of(tag_id) for tag_id in self.tags if tag_id in arena)

    def to_record(self, arena: TagArena) -> dict:
        """Plain dict in the persisted document layout."""
        return {
            "id": self.id,
            "summary": self.summary,
            "tags": self.tag_names(arena),
            "complete": self.complete,
            "notes": self.notes,
        }


def intern_all(arena: TagArena, names: Iterable[str]) -> Set[int]:
    """Intern every name and return the resulting set of tag ids."""
    return {arena.intern(name).id for name in names}
