"""Unit tests for the label diff engine."""

from __future__ import annotations

from gh_label_sync.diff import DiffKind, DiffSummary, compute_diff, summarize
from gh_label_sync.labels import Label


def test_end_to_end_scenario_classification_and_order() -> None:
    desired = [Label("bug", "d73a4a"), Label("docs", "0075ca")]
    observed = [Label("bug", "D73A4A"), Label("stale", "cccccc")]

    diffs = compute_diff(desired, observed)

    assert [(d.kind, d.name) for d in diffs] == [
        (DiffKind.MATCH, "bug"),
        (DiffKind.CREATE, "docs"),
        (DiffKind.EXTRA, "stale"),
    ]
    create = diffs[1]
    assert create.desired == Label("docs", "0075ca")
    assert create.observed is None
    extra = diffs[2]
    assert extra.desired is None
    assert extra.observed == Label("stale", "cccccc")


def test_color_comparison_is_normalization_invariant() -> None:
    desired = [Label("a", "#ff0000", "x"), Label("b", "ff0000", "x"), Label("c", "FF0000", "x")]
    observed = [Label("a", "ff0000", "x"), Label("b", "#FF0000", "x"), Label("c", "ff0000", "x")]

    diffs = compute_diff(desired, observed)

    assert {d.kind for d in diffs} == {DiffKind.MATCH}


def test_update_flags_reflect_changed_fields() -> None:
    desired = [
        Label("color-only", "000000", "same"),
        Label("desc-only", "111111", "new"),
        Label("both", "222222", "new"),
    ]
    observed = [
        Label("color-only", "ffffff", "same"),
        Label("desc-only", "111111", "old"),
        Label("both", "eeeeee", "old"),
    ]

    diffs = compute_diff(desired, observed)

    assert [d.kind for d in diffs] == [DiffKind.UPDATE] * 3
    assert [(d.color_changed, d.description_changed) for d in diffs] == [
        (True, False),
        (False, True),
        (True, True),
    ]
    assert diffs[0].observed == Label("color-only", "ffffff", "same")
    assert diffs[0].desired == Label("color-only", "000000", "same")


def test_description_comparison_is_exact() -> None:
    diffs = compute_diff([Label("bug", "d73a4a", "Broken")], [Label("bug", "d73a4a", "broken")])

    assert diffs[0].kind is DiffKind.UPDATE
    assert diffs[0].description_changed is True


def test_partition_property_and_record_count() -> None:
    desired = [Label("a", "000001"), Label("b", "000002"), Label("c", "000003")]
    observed = [Label("z", "000009"), Label("b", "000002"), Label("y", "000008"), Label("a", "aaaaaa")]

    diffs = compute_diff(desired, observed)
    names = [d.name for d in diffs]

    observed_only = {"z", "y"}
    assert len(diffs) == len(desired) + len(observed_only)
    assert len(names) == len(set(names))
    assert set(names) == {label.name for label in desired} | {label.name for label in observed}
    # extras keep observed order
    assert names[-2:] == ["z", "y"]


def test_each_record_has_consistent_sides() -> None:
    desired = [Label("a", "000001"), Label("b", "000002")]
    observed = [Label("b", "000003"), Label("c", "000004")]

    for d in compute_diff(desired, observed):
        assert isinstance(d.kind, DiffKind)
        assert (d.desired is None) == (d.kind is DiffKind.EXTRA)
        assert (d.observed is None) == (d.kind is DiffKind.CREATE)


def test_compute_diff_is_idempotent() -> None:
    desired = [Label("b", "000002"), Label("a", "000001", "x")]
    observed = [Label("c", "000003"), Label("a", "000001")]

    assert compute_diff(desired, observed) == compute_diff(desired, observed)


def test_empty_inputs() -> None:
    assert compute_diff([], []) == []
    assert [d.kind for d in compute_diff([], [Label("a", "000000")])] == [DiffKind.EXTRA]
    assert [d.kind for d in compute_diff([Label("a", "000000")], [])] == [DiffKind.CREATE]


def test_duplicate_names_last_wins_first_position() -> None:
    desired = [Label("a", "111111"), Label("b", "222222"), Label("a", "333333")]
    observed = [Label("a", "000000"), Label("a", "333333"), Label("x", "444444"), Label("x", "555555")]

    diffs = compute_diff(desired, observed)

    assert [(d.kind, d.name) for d in diffs] == [
        (DiffKind.MATCH, "a"),
        (DiffKind.CREATE, "b"),
        (DiffKind.EXTRA, "x"),
    ]
    assert diffs[0].desired == Label("a", "333333")
    assert diffs[2].observed == Label("x", "555555")


def test_summarize_and_actionable_counts() -> None:
    desired = [Label("bug", "d73a4a"), Label("docs", "0075ca"), Label("ui", "000000")]
    observed = [Label("bug", "d73a4a"), Label("ui", "ffffff"), Label("stale", "cccccc")]

    summary = summarize(compute_diff(desired, observed))

    assert summary == DiffSummary(matches=1, creates=1, updates=1, extras=1)
    assert summary.actionable(force_update=False, delete_unmanaged=False) == 1
    assert summary.actionable(force_update=True, delete_unmanaged=False) == 2
    assert summary.actionable(force_update=True, delete_unmanaged=True) == 3
