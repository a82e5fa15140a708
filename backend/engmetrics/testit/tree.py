"""In-memory TestIt suite trees.

A project owns an ordered forest of suites; every suite carries its own
outcome counters and an ordered list of child suites. Suite ids are expected
to be unique within a project but nothing enforces it, so lookups always
return the first match in depth-first pre-order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, fields
from functools import cached_property

COUNT_FIELDS = ("total", "passing", "failing", "skipped", "automated", "automatable")


@dataclass(frozen=True)
class CountSet:
    """Six outcome counters. ``+`` is field-wise, associative and commutative."""

    total: int = 0
    passing: int = 0
    failing: int = 0
    skipped: int = 0
    automated: int = 0
    automatable: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")

    def __add__(self, other: CountSet) -> CountSet:
        if not isinstance(other, CountSet):
            return NotImplemented
        return CountSet(**{name: getattr(self, name) + getattr(other, name) for name in COUNT_FIELDS})

    @classmethod
    def zero(cls) -> CountSet:
        return cls()

    @classmethod
    def from_mapping(cls, data: dict) -> CountSet:
        """Build from a dict, treating missing or null counters as zero."""
        return cls(**{name: int(data.get(name) or 0) for name in COUNT_FIELDS})

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in COUNT_FIELDS}


@dataclass(eq=False)
class TestSuite:
    """A suite node. Equality is identity so duplicate ids stay distinguishable."""

    __test__ = False  # not a pytest class

    suite_id: str
    name: str
    counts: CountSet = field(default_factory=CountSet)
    child_suites: list[TestSuite] | None = None

    @property
    def children(self) -> list[TestSuite]:
        return self.child_suites or []


def iter_suites(forest: Iterable[TestSuite] | None) -> Iterator[tuple[tuple[str, ...], TestSuite]]:
    """Yield ``(ancestor_ids, suite)`` in depth-first pre-order.

    Children are visited in stored order. Uses an explicit stack so very deep
    trees do not hit the recursion limit.
    """
    stack: list[tuple[tuple[str, ...], TestSuite]] = [((), s) for s in reversed(list(forest or []))]
    while stack:
        ancestors, suite = stack.pop()
        yield ancestors, suite
        lineage = (*ancestors, suite.suite_id)
        for child in reversed(suite.children):
            stack.append((lineage, child))


@dataclass(eq=False)
class Project:
    project_id: str
    name: str = ""
    prefix: str = ""
    test_suites: list[TestSuite] = field(default_factory=list)

    @cached_property
    def _suite_index(self) -> dict[str, TestSuite]:
        index: dict[str, TestSuite] = {}
        for _, suite in iter_suites(self.test_suites):
            # first pre-order occurrence wins
            index.setdefault(suite.suite_id, suite)
        return index

    def find_suite(self, suite_id: str) -> TestSuite | None:
        """Return the first suite with ``suite_id`` in pre-order, or None.

        The index is built once per project and reused, so the tree must not
        be mutated after the first lookup.
        """
        return self._suite_index.get(suite_id)


def suite_from_document(doc: dict) -> TestSuite:
    """Convert a stored suite document (and its descendants) into nodes."""
    root = TestSuite(
        suite_id=str(doc["suite_id"]),
        name=doc.get("name") or "",
        counts=CountSet.from_mapping(doc),
    )
    pending = [(root, doc.get("child_suites") or [])]
    while pending:
        parent, child_docs = pending.pop()
        parent.child_suites = []
        for child_doc in child_docs:
            child = TestSuite(
                suite_id=str(child_doc["suite_id"]),
                name=child_doc.get("name") or "",
                counts=CountSet.from_mapping(child_doc),
            )
            parent.child_suites.append(child)
            pending.append((child, child_doc.get("child_suites") or []))
    return root


def project_from_document(doc: dict) -> Project:
    return Project(
        project_id=str(doc["project_id"]),
        name=doc.get("name") or "",
        prefix=doc.get("prefix") or "",
        test_suites=[suite_from_document(s) for s in doc.get("test_suites") or []],
    )
