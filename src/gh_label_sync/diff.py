"""Label set reconciliation.

Compares a desired label list against the labels observed in a repository and
classifies every label name exactly once:

- ``CREATE``: desired but missing from the repository
- ``UPDATE``: present on both sides with a different color or description
- ``MATCH``: present on both sides and identical
- ``EXTRA``: present in the repository only (an unmanaged label)

Output order is defined by the input lists, never by dict iteration: desired
labels first in desired order, then extras in observed order.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from gh_label_sync.labels import Label


class DiffKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    MATCH = "match"
    EXTRA = "extra"


@dataclass(frozen=True, slots=True)
class LabelDiff:
    """Reconciliation status of one label name."""

    kind: DiffKind
    name: str
    desired: Label | None = None
    observed: Label | None = None

    # Only meaningful for UPDATE.
    color_changed: bool = False
    description_changed: bool = False


@dataclass(frozen=True, slots=True)
class DiffSummary:
    matches: int = 0
    creates: int = 0
    updates: int = 0
    extras: int = 0

    def actionable(self, *, force_update: bool, delete_unmanaged: bool) -> int:
        """Number of records a run with the given policy would act on."""

        total = self.creates
        if force_update:
            total += self.updates
        if delete_unmanaged:
            total += self.extras
        return total


def _last_by_name(labels: Iterable[Label]) -> dict[str, Label]:
    by_name: dict[str, Label] = {}
    for label in labels:
        by_name[label.name] = label
    return by_name


def compute_diff(desired: Sequence[Label], observed: Sequence[Label]) -> list[LabelDiff]:
    """Compute the reconciliation plan turning ``observed`` into ``desired``.

    Duplicate names within one list resolve to the last definition, placed at
    the position of the first occurrence.
    """

    desired_by_name = _last_by_name(desired)
    observed_by_name = _last_by_name(observed)

    diffs: list[LabelDiff] = []
    seen: set[str] = set()

    for item in desired:
        if item.name in seen:
            continue
        seen.add(item.name)

        wanted = desired_by_name[item.name]
        current = observed_by_name.get(item.name)
        if current is None:
            diffs.append(LabelDiff(kind=DiffKind.CREATE, name=wanted.name, desired=wanted))
            continue

        color_changed = wanted.color != current.color
        description_changed = wanted.description != current.description
        if not color_changed and not description_changed:
            diffs.append(
                LabelDiff(kind=DiffKind.MATCH, name=wanted.name, desired=wanted, observed=current)
            )
        else:
            diffs.append(
                LabelDiff(
                    kind=DiffKind.UPDATE,
                    name=wanted.name,
                    desired=wanted,
                    observed=current,
                    color_changed=color_changed,
                    description_changed=description_changed,
                )
            )

    for item in observed:
        if item.name in seen:
            continue
        seen.add(item.name)
        diffs.append(
            LabelDiff(kind=DiffKind.EXTRA, name=item.name, observed=observed_by_name[item.name])
        )

    return diffs


def summarize(diffs: Iterable[LabelDiff]) -> DiffSummary:
    counts = dict.fromkeys(DiffKind, 0)
    for d in diffs:
        counts[d.kind] += 1
    return DiffSummary(
        matches=counts[DiffKind.MATCH],
        creates=counts[DiffKind.CREATE],
        updates=counts[DiffKind.UPDATE],
        extras=counts[DiffKind.EXTRA],
    )
