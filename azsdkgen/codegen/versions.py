"""API version parsing and latest-version selection.

Azure specification trees keep every published API version side by side::

    network/resource-manager/Microsoft.Network/stable/2024-07-01/network.json
    network/resource-manager/Microsoft.Network/preview/2024-01-01-preview/network.json

When a name is defined in several of them the generator has to pick one.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

__all__ = [
    'ApiVersion',
    'UNKNOWN_VERSION',
    'embedded_date',
    'latest_by_embedded_date',
    'select_latest',
]

T = TypeVar('T')

_VERSION_SEGMENT = re.compile(
    r'(?:^|/)(?P<qualifier>stable|preview)/(?P<date>\d{4}-\d{2}-\d{2})(?P<suffix>-preview)?(?:/|$)'
)
_DATE = re.compile(r'\d{4}-\d{2}-\d{2}')
MISSING_DATE = '0000-00-00'


@dataclass(frozen=True)
class ApiVersion:
    """The version segment of a specification path.

    Attributes:
        version: The folder name, e.g. '2024-07-01' or '2024-01-01-preview'.
        date: The ISO date part, or '' when the path has no version segment.
        stable: Whether the path lives under a 'stable' folder.
    """

    version: str
    date: str
    stable: bool

    @classmethod
    def from_path(cls, path: str) -> 'ApiVersion':
        """Parse the version segment out of a (relative or absolute) path.

        Example:
            >>> ApiVersion.from_path('a/stable/2024-07-01/b.json')
            ApiVersion(version='2024-07-01', date='2024-07-01', stable=True)
        """
        match = _VERSION_SEGMENT.search(path.replace('\\', '/'))
        if not match:
            return UNKNOWN_VERSION
        date = match.group('date')
        return cls(
            version=date + (match.group('suffix') or ''),
            date=date,
            stable=match.group('qualifier') == 'stable',
        )

    @property
    def known(self) -> bool:
        return bool(self.date)

    def sort_key(self) -> tuple[bool, str]:
        # Stable strictly outranks preview, then ISO dates compare as strings.
        return (self.stable, self.date)


UNKNOWN_VERSION = ApiVersion(version='unknown', date='', stable=False)


def select_latest(candidates: Iterable[T], path_of: Callable[[T], str]) -> T:
    """Pick the candidate living under the newest API version folder.

    Stable beats preview; within the same qualifier the greatest date wins.
    Ties (including candidates without a version segment) go to the last
    candidate in iteration order.

    Args:
        candidates: The competing items, in scan order.
        path_of: Returns the path used to find each candidate's version.

    Returns:
        The selected candidate.

    Raises:
        ValueError: If ``candidates`` is empty.
    """
    best: T | None = None
    best_key: tuple[bool, str] | None = None
    for candidate in candidates:
        key = ApiVersion.from_path(path_of(candidate)).sort_key()
        if best_key is None or key >= best_key:
            best, best_key = candidate, key
    if best_key is None:
        raise ValueError('select_latest() requires at least one candidate')
    return best


def embedded_date(path: str) -> str:
    """Return the greatest YYYY-MM-DD found anywhere in ``path``."""
    dates = _DATE.findall(path)
    return max(dates) if dates else MISSING_DATE


def latest_by_embedded_date(candidates: Iterable[T], path_of: Callable[[T], str]) -> T:
    """Pick the candidate whose path embeds the lexicographically greatest date.

    Paths without a date sort as '0000-00-00'. Among equal dates the first
    candidate wins, so callers should pass candidates in a stable order.
    """
    ordered = list(candidates)
    if not ordered:
        raise ValueError('latest_by_embedded_date() requires at least one candidate')
    return max(ordered, key=lambda candidate: embedded_date(path_of(candidate)))
