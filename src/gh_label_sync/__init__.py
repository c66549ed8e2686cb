"""gh-label-sync.

Synchronize a repository's issue labels with a YAML/JSON/CSV file, or clone
them from another repository:
- configuration loaded from the environment or `.env`
- structured logging
- a diff/plan preview before any change is applied
"""

__version__ = "0.1.0"

from gh_label_sync.diff import DiffKind, LabelDiff, compute_diff
from gh_label_sync.labels import Label, normalize_color
from gh_label_sync.reconcile import ReconcilePolicy, ReconcileResult, ReconcileState, apply

__all__ = [
    "__version__",
    "DiffKind",
    "Label",
    "LabelDiff",
    "ReconcilePolicy",
    "ReconcileResult",
    "ReconcileState",
    "apply",
    "compute_diff",
    "normalize_color",
]
