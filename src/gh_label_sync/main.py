"""CLI entrypoint for gh-label-sync.

Subcommands:
- ``export``: dump a repository's labels as YAML or JSON
- ``sync``: reconcile a repository's labels against a label file
- ``clone``: reconcile a repository's labels against another repository
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import ValidationError

from gh_label_sync import __version__
from gh_label_sync.config import LabelSyncSettings
from gh_label_sync.diff import compute_diff
from gh_label_sync.files import LabelFileError, parse_file, write_json, write_yaml
from gh_label_sync.github.client import GitHubClient
from gh_label_sync.labels import Label
from gh_label_sync.logging import configure_logging
from gh_label_sync.reconcile import (
    ItemOutcome,
    ReconcilePolicy,
    ReconcileResult,
    ReconcileState,
    apply,
)
from gh_label_sync.render import (
    format_diff,
    format_outcome,
    format_result,
    format_state,
    format_summary,
)
from gh_label_sync.repository import (
    RepositoryRef,
    RepositoryResolutionError,
    ensure_api_host,
    parse_repository,
    resolve_repository,
)

logger = logging.getLogger(__name__)

STDOUT_PATH = "-"

ClientFactory = Callable[[LabelSyncSettings, RepositoryRef], GitHubClient]


class CommandError(RuntimeError):
    """A command cannot proceed with the given input."""


def _add_repo_argument(parser: argparse.ArgumentParser, *, default: object) -> None:
    parser.add_argument(
        "-R",
        "--repo",
        dest="repository",
        default=default,
        help="Repository in the form 'owner/repo' (defaults to GH_REPO or the git remote)",
    )


def _add_apply_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without applying",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Update existing labels that differ",
    )
    parser.add_argument(
        "--delete-unmanaged",
        action="store_true",
        help="Delete labels that are not in the desired set",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Also list labels that already match",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-label-sync",
        description="Bulk label management and synchronization from YAML/JSON/CSV files",
    )
    parser.add_argument("--version", action="version", version=f"gh-label-sync {__version__}")
    _add_repo_argument(parser, default=None)

    # Lets --repo also follow the subcommand without clobbering a value given before it.
    repo_parent = argparse.ArgumentParser(add_help=False)
    _add_repo_argument(repo_parent, default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser(
        "export", parents=[repo_parent], help="Export repository labels to YAML or JSON"
    )
    export.add_argument(
        "--format",
        choices=["yaml", "yml", "json"],
        default="yaml",
        help="Output format",
    )
    export.add_argument(
        "-o",
        "--output",
        default=STDOUT_PATH,
        help="Write to this file instead of stdout",
    )

    sync = subparsers.add_parser(
        "sync", parents=[repo_parent], help="Sync labels from a YAML, JSON, or CSV file"
    )
    sync.add_argument(
        "-f",
        "--file",
        required=True,
        help="Label definition file (YAML, JSON, or CSV; '-' reads YAML from stdin)",
    )
    _add_apply_arguments(sync)

    clone = subparsers.add_parser(
        "clone",
        parents=[repo_parent],
        help="Clone labels from another repository into the --repo repository",
    )
    clone.add_argument("source", help="Source repository in the form 'owner/repo'")
    _add_apply_arguments(clone)

    return parser


def ask_confirmation(
    prompt: str = "\n? Apply changes? (y/N) ",
    *,
    input_fn: Callable[[str], str] | None = None,
) -> bool:
    """Block on one answer from the operator. Only 'y'/'yes' count as consent."""

    try:
        response = (input_fn or input)(prompt)
    except EOFError:
        print()
        return False
    return response.strip().lower() in {"y", "yes"}


def _print_outcome(outcome: ItemOutcome) -> None:
    print(format_outcome(outcome), file=sys.stdout if outcome.ok else sys.stderr)


def _default_client_factory(settings: LabelSyncSettings, repository: RepositoryRef) -> GitHubClient:
    return GitHubClient(
        token=settings.github_token,
        repository=repository.full_name,
        base_url=settings.github_base_url,
        timeout=settings.request_timeout,
    )


def _connect(
    settings: LabelSyncSettings, repository: RepositoryRef, client_factory: ClientFactory
) -> GitHubClient:
    ensure_api_host(repository, settings.github_base_url)
    return client_factory(settings, repository)


def _policy_from_args(args: argparse.Namespace) -> ReconcilePolicy:
    return ReconcilePolicy(
        force_update=args.force,
        delete_unmanaged=args.delete_unmanaged,
        dry_run=args.dry_run,
        confirmed=args.yes,
    )


def reconcile_labels(
    *,
    desired: Sequence[Label],
    observed: Sequence[Label],
    client: GitHubClient,
    policy: ReconcilePolicy,
    verbose: bool = False,
    source: str = "file",
    confirm: Callable[[], bool] = ask_confirmation,
) -> ReconcileResult:
    """Preview the plan, then apply it to ``client``'s repository."""

    diffs = compute_diff(desired, observed)

    print(format_diff(diffs, verbose=verbose, source=source), end="")
    print(
        format_summary(
            diffs,
            update_enabled=policy.force_update,
            delete_enabled=policy.delete_unmanaged,
        ),
        end="",
    )

    result = apply(diffs, client, policy, confirm=confirm, on_outcome=_print_outcome)

    message = format_state(result)
    if message is not None:
        print(message)
    if result.state is ReconcileState.COMPLETED:
        print()
        print(format_result(result))
        if result.failures:
            logger.info(
                "Some label changes failed",
                extra={"failed": [f.name for f in result.failures]},
            )
    return result


def _run_export(
    args: argparse.Namespace, settings: LabelSyncSettings, client_factory: ClientFactory
) -> int:
    repository = resolve_repository(args.repository, settings.default_repository)
    client = _connect(settings, repository, client_factory)
    try:
        labels = client.list_labels()
    finally:
        client.close()

    writer = write_json if args.format == "json" else write_yaml
    if args.output == STDOUT_PATH:
        writer(sys.stdout, labels)
    else:
        with Path(args.output).open("w", encoding="utf-8") as f:
            writer(f, labels)
        print(f"Exported {len(labels)} label(s) to {args.output}", file=sys.stderr)
    return 0


def _run_sync(
    args: argparse.Namespace, settings: LabelSyncSettings, client_factory: ClientFactory
) -> int:
    desired = parse_file(args.file)
    if not desired:
        raise LabelFileError("no labels found in file")

    repository = resolve_repository(args.repository, settings.default_repository)
    client = _connect(settings, repository, client_factory)
    try:
        observed = client.list_labels()
        reconcile_labels(
            desired=desired,
            observed=observed,
            client=client,
            policy=_policy_from_args(args),
            verbose=args.verbose,
            source="file",
        )
    finally:
        client.close()
    return 0


def _run_clone(
    args: argparse.Namespace, settings: LabelSyncSettings, client_factory: ClientFactory
) -> int:
    if not args.repository:
        raise RepositoryResolutionError("target repository required (use --repo flag)")

    source_repo = parse_repository(args.source)
    target_repo = parse_repository(args.repository)

    print(f"Fetching labels from {source_repo}...")
    source_client = _connect(settings, source_repo, client_factory)
    try:
        desired = source_client.list_labels()
    finally:
        source_client.close()

    if not desired:
        raise CommandError("no labels found in source repository")
    print(f"Found {len(desired)} label(s) in source repository\n")

    print(f"Fetching labels from {target_repo}...")
    target_client = _connect(settings, target_repo, client_factory)
    try:
        observed = target_client.list_labels()
        reconcile_labels(
            desired=desired,
            observed=observed,
            client=target_client,
            policy=_policy_from_args(args),
            verbose=args.verbose,
            source="source repository",
        )
    finally:
        target_client.close()
    return 0


_COMMANDS: dict[
    str, Callable[[argparse.Namespace, LabelSyncSettings, ClientFactory], int]
] = {
    "export": _run_export,
    "sync": _run_sync,
    "clone": _run_clone,
}


def main(
    argv: list[str] | None = None,
    *,
    client_factory: ClientFactory = _default_client_factory,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = LabelSyncSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        logger.error("Unknown command", extra={"command": args.command})
        return 2

    try:
        return handler(args, settings, client_factory)

    except (LabelFileError, RepositoryResolutionError, CommandError) as e:
        logger.info(str(e), extra={"command": args.command})
        print(f"error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Command failed", extra={"command": args.command})
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
