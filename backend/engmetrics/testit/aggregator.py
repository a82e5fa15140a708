"""Sum suite counters over a batch of paths, tolerating bad paths.

Each path is resolved to a tagged result and the results are folded with an
associative, commutative combine, so batches can be split, processed in any
order and merged back without changing the outcome.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import reduce

from engmetrics.exceptions import PathResolutionError
from engmetrics.testit.resolver import ProjectStore, resolve
from engmetrics.testit.tree import CountSet


@dataclass(frozen=True)
class Success:
    path: str
    counts: CountSet


@dataclass(frozen=True)
class Failure:
    path: str
    message: str


StatResult = Success | Failure


@dataclass(frozen=True)
class AggregatedResult:
    counts: CountSet = CountSet()
    # (path, message) pairs, kept sorted so the result does not depend on input order
    errors: tuple[tuple[str, str], ...] = ()

    def combine(self, other: AggregatedResult) -> AggregatedResult:
        return AggregatedResult(
            counts=self.counts + other.counts,
            errors=tuple(sorted(self.errors + other.errors)),
        )

    @classmethod
    def empty(cls) -> AggregatedResult:
        return cls()

    @classmethod
    def of(cls, result: StatResult) -> AggregatedResult:
        if isinstance(result, Success):
            return cls(counts=result.counts)
        return cls(errors=((result.path, result.message),))


def resolve_stat(store: ProjectStore, path: str) -> StatResult:
    """Resolve a single path. Only per-path errors are captured."""
    try:
        suite = resolve(store, path)
    except PathResolutionError as e:
        return Failure(path=path, message=e.message)
    return Success(path=path, counts=suite.counts)


def fold(results: Iterable[StatResult]) -> AggregatedResult:
    return reduce(
        lambda acc, r: acc.combine(AggregatedResult.of(r)),
        results,
        AggregatedResult.empty(),
    )


def aggregate(store: ProjectStore, paths: Sequence[str]) -> AggregatedResult:
    if isinstance(paths, str):
        raise TypeError("paths must be a sequence of path strings, not a single string")
    return fold(resolve_stat(store, path) for path in paths)
