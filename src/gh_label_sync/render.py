"""Human-readable plan previews and run reports.

Everything here returns text; printing is left to the CLI.
"""

from __future__ import annotations

from collections.abc import Sequence

from gh_label_sync.diff import DiffKind, LabelDiff, summarize
from gh_label_sync.reconcile import ItemOutcome, MutationKind, ReconcileResult, ReconcileState

_PAST_TENSE: dict[MutationKind, str] = {
    MutationKind.CREATE: "Created",
    MutationKind.UPDATE: "Updated",
    MutationKind.DELETE: "Deleted",
}


def _describe_changes(diff: LabelDiff) -> str:
    changes: list[str] = []
    if diff.color_changed and diff.desired is not None and diff.observed is not None:
        changes.append(f"color: {diff.observed.color} → {diff.desired.color}")
    if diff.description_changed:
        changes.append("description")
    return ", ".join(changes)


def format_diff(diffs: Sequence[LabelDiff], *, verbose: bool = False, source: str = "file") -> str:
    """Render one line per diff record.

    MATCH records are only listed when ``verbose`` is set. ``source`` names the
    desired side in the wording for unmanaged labels.
    """

    lines = ["Analyzing labels..."]
    for d in diffs:
        if d.kind is DiffKind.MATCH:
            if verbose:
                lines.append(f"  ✓ {d.name} - matches")
        elif d.kind is DiffKind.CREATE:
            color = d.desired.color if d.desired is not None else ""
            lines.append(f"  + {d.name} - will create (color: {color})")
        elif d.kind is DiffKind.UPDATE:
            lines.append(f"  ~ {d.name} - differs ({_describe_changes(d)})")
        elif d.kind is DiffKind.EXTRA:
            lines.append(f"  ⚠ {d.name} - exists but not in {source}")
    return "\n".join(lines) + "\n"


def format_summary(
    diffs: Sequence[LabelDiff], *, update_enabled: bool, delete_enabled: bool
) -> str:
    """Render per-kind counts. Categories with no records are omitted."""

    s = summarize(diffs)
    lines = ["", "Summary:"]
    if s.matches:
        lines.append(f"  {s.matches} label(s) match")
    if s.creates:
        lines.append(f"  {s.creates} label(s) to create")
    if s.updates:
        if update_enabled:
            lines.append(f"  {s.updates} label(s) to update")
        else:
            lines.append(f"  {s.updates} label(s) differ (use --force to update)")
    if s.extras:
        if delete_enabled:
            lines.append(f"  {s.extras} unmanaged label(s) to delete")
        else:
            lines.append(f"  {s.extras} unmanaged label(s) (use --delete-unmanaged to remove)")
    return "\n".join(lines) + "\n"


def format_outcome(outcome: ItemOutcome) -> str:
    if outcome.ok:
        return f"  ✓ {_PAST_TENSE[outcome.action]} {outcome.name}"
    return f"  ✗ Failed to {outcome.action.value} {outcome.name}: {outcome.error}"


def format_state(result: ReconcileResult) -> str | None:
    """Message for runs that ended without applying anything."""

    if result.state is ReconcileState.ALREADY_IN_SYNC:
        return "\n✓ All labels are in sync"
    if result.state is ReconcileState.DRY_RUN_REPORTED:
        return f"\n(dry-run mode: {result.planned} change(s) not applied)"
    if result.state is ReconcileState.CANCELLED:
        return "Cancelled."
    return None


def format_result(result: ReconcileResult) -> str:
    """Final line of a completed run. Only successful mutations are counted."""

    parts: list[str] = []
    if result.created:
        parts.append(f"{result.created} created")
    if result.updated:
        parts.append(f"{result.updated} updated")
    if result.deleted:
        parts.append(f"{result.deleted} deleted")

    line = f"✓ Synced labels ({', '.join(parts)})" if parts else "✓ No changes made"
    if result.failures:
        line += f"\n✗ {len(result.failures)} change(s) failed"
    return line
