"""Apply a label diff to a repository.

The reconciler walks the diff in order and issues one mutation at a time.
Policy is passed in explicitly; nothing here reads CLI flags or globals.

A run moves through an explicit state machine:

    PLANNED -> ALREADY_IN_SYNC | DRY_RUN_REPORTED | AWAITING_CONFIRMATION | APPLYING
    AWAITING_CONFIRMATION -> CANCELLED | APPLYING
    APPLYING -> COMPLETED

Per-item mutation failures never abort the batch: they are logged, recorded
on the result and the next record is attempted.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import assert_never

from gh_label_sync.diff import DiffKind, LabelDiff, summarize
from gh_label_sync.labels import Label

logger = logging.getLogger(__name__)


class LabelMutator(ABC):
    """Write access to one repository's labels.

    Implementations raise on failure; the reconciler turns exceptions into
    per-item outcomes.
    """

    @abstractmethod
    def create_label(self, label: Label) -> Label:
        """Create ``label`` and return it as stored."""

    @abstractmethod
    def update_label(self, name: str, label: Label) -> Label:
        """Replace the label called ``name`` with ``label``."""

    @abstractmethod
    def delete_label(self, name: str) -> None:
        """Delete the label called ``name``."""


class ReconcileState(str, Enum):
    PLANNED = "planned"
    ALREADY_IN_SYNC = "already_in_sync"
    DRY_RUN_REPORTED = "dry_run_reported"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CANCELLED = "cancelled"
    APPLYING = "applying"
    COMPLETED = "completed"


ALLOWED_TRANSITIONS: dict[ReconcileState, set[ReconcileState]] = {
    ReconcileState.PLANNED: {
        ReconcileState.ALREADY_IN_SYNC,
        ReconcileState.DRY_RUN_REPORTED,
        ReconcileState.AWAITING_CONFIRMATION,
        ReconcileState.APPLYING,
    },
    ReconcileState.AWAITING_CONFIRMATION: {
        ReconcileState.CANCELLED,
        ReconcileState.APPLYING,
    },
    ReconcileState.APPLYING: {ReconcileState.COMPLETED},
    ReconcileState.ALREADY_IN_SYNC: set(),
    ReconcileState.DRY_RUN_REPORTED: set(),
    ReconcileState.CANCELLED: set(),
    ReconcileState.COMPLETED: set(),
}

TERMINAL_STATES: frozenset[ReconcileState] = frozenset(
    state for state, targets in ALLOWED_TRANSITIONS.items() if not targets
)


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: ReconcileState, to: ReconcileState) -> ReconcileState:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    logger.debug("Reconcile state changed", extra={"from": current.value, "to": to.value})
    return to


@dataclass(frozen=True, slots=True)
class ReconcilePolicy:
    """What a run is allowed to do.

    ``confirmed`` means the operator already agreed (e.g. ``--yes``), so no
    prompt is shown.
    """

    force_update: bool = False
    delete_unmanaged: bool = False
    dry_run: bool = False
    confirmed: bool = False


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    """Result of one attempted mutation."""

    action: MutationKind
    name: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    state: ReconcileState
    planned: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    failures: tuple[ItemOutcome, ...] = field(default_factory=tuple)

    @property
    def applied(self) -> int:
        return self.created + self.updated + self.deleted


def _action_for(diff: LabelDiff, policy: ReconcilePolicy) -> MutationKind | None:
    kind = diff.kind
    if kind is DiffKind.CREATE:
        return MutationKind.CREATE
    if kind is DiffKind.UPDATE:
        return MutationKind.UPDATE if policy.force_update else None
    if kind is DiffKind.EXTRA:
        return MutationKind.DELETE if policy.delete_unmanaged else None
    if kind is DiffKind.MATCH:
        return None
    assert_never(kind)


def _mutate(mutator: LabelMutator, action: MutationKind, diff: LabelDiff) -> None:
    if action is MutationKind.CREATE:
        assert diff.desired is not None
        mutator.create_label(diff.desired)
    elif action is MutationKind.UPDATE:
        assert diff.desired is not None
        mutator.update_label(diff.name, diff.desired)
    elif action is MutationKind.DELETE:
        mutator.delete_label(diff.name)
    else:
        assert_never(action)


def apply(
    diffs: Sequence[LabelDiff],
    mutator: LabelMutator,
    policy: ReconcilePolicy,
    *,
    confirm: Callable[[], bool] | None = None,
    on_outcome: Callable[[ItemOutcome], None] | None = None,
) -> ReconcileResult:
    """Execute ``diffs`` against ``mutator`` under ``policy``.

    Args:
        diffs: Ordered diff records from :func:`gh_label_sync.diff.compute_diff`.
        mutator: Label write interface of the target repository.
        policy: Run policy.
        confirm: Asked once before the first mutation unless the policy is
            already confirmed. A missing callable counts as a refusal.
        on_outcome: Called after every attempted mutation, in order.

    Returns:
        The terminal state with success counters and per-item failures.
    """

    state = ReconcileState.PLANNED
    planned = summarize(diffs).actionable(
        force_update=policy.force_update,
        delete_unmanaged=policy.delete_unmanaged,
    )

    if planned == 0:
        state = transition(current=state, to=ReconcileState.ALREADY_IN_SYNC)
        return ReconcileResult(state=state)

    if policy.dry_run:
        state = transition(current=state, to=ReconcileState.DRY_RUN_REPORTED)
        logger.info("Dry run; no changes applied", extra={"planned": planned})
        return ReconcileResult(state=state, planned=planned)

    if not policy.confirmed:
        state = transition(current=state, to=ReconcileState.AWAITING_CONFIRMATION)
        if confirm is None or not confirm():
            state = transition(current=state, to=ReconcileState.CANCELLED)
            logger.info("Reconcile cancelled by operator", extra={"planned": planned})
            return ReconcileResult(state=state, planned=planned)

    state = transition(current=state, to=ReconcileState.APPLYING)

    counts = dict.fromkeys(MutationKind, 0)
    failures: list[ItemOutcome] = []

    for diff in diffs:
        action = _action_for(diff, policy)
        if action is None:
            continue

        try:
            _mutate(mutator, action, diff)
        except Exception as e:
            logger.info(
                "Label mutation failed",
                extra={"label": diff.name, "action": action.value, "error": str(e)},
            )
            outcome = ItemOutcome(action=action, name=diff.name, error=str(e) or type(e).__name__)
            failures.append(outcome)
        else:
            logger.info("Label mutated", extra={"label": diff.name, "action": action.value})
            outcome = ItemOutcome(action=action, name=diff.name)
            counts[action] += 1

        if on_outcome is not None:
            on_outcome(outcome)

    state = transition(current=state, to=ReconcileState.COMPLETED)
    return ReconcileResult(
        state=state,
        planned=planned,
        created=counts[MutationKind.CREATE],
        updated=counts[MutationKind.UPDATE],
        deleted=counts[MutationKind.DELETE],
        failures=tuple(failures),
    )
