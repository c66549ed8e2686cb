"""Label definition files.

Supported formats, chosen by file extension:

- YAML (``.yml``/``.yaml``, also the fallback for unknown extensions and stdin)
- JSON (``.json``)
- CSV (``.csv``) with a header row

YAML and JSON documents hold a single top-level ``labels`` list::

    labels:
      - name: bug
        color: d73a4a
        description: Something isn't working

CSV files need ``name`` and ``color`` columns; ``description`` (or ``desc``)
is optional. Header names are matched case-insensitively after trimming.
"""

from __future__ import annotations

import csv
import json
import logging
import re
import sys
from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Any, TextIO

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gh_label_sync.labels import Label, normalize_color

logger = logging.getLogger(__name__)

STDIN_PATH = "-"

_HEX_COLOR = re.compile(r"^[0-9a-f]{6}$")


class LabelFileError(ValueError):
    """Raised when a label file cannot be read or does not describe valid labels."""


class LabelEntry(BaseModel):
    """One label as written in a definition file."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    color: str
    description: str | None = Field(default=None)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("color", mode="before")
    @classmethod
    def _normalize_color(cls, value: Any) -> str:
        # Unquoted YAML colors such as 000000 load as integers and lose digits.
        if not isinstance(value, str):
            raise ValueError("color must be a string (quote hex colors in YAML)")
        color = normalize_color(value)
        if not _HEX_COLOR.match(color):
            raise ValueError(f"color must be 6 hex digits, got {value!r}")
        return color

    def to_label(self) -> Label:
        return Label(name=self.name, color=self.color, description=self.description or "")


class LabelFile(BaseModel):
    """Top-level document of a YAML or JSON label file."""

    labels: list[LabelEntry] = Field(default_factory=list)


def _labels_from_document(document: Any, *, source: str) -> list[Label]:
    if document is None:
        return []
    if not isinstance(document, dict):
        raise LabelFileError(f"{source}: expected a mapping with a top-level 'labels' list")
    try:
        parsed = LabelFile.model_validate(document)
    except ValidationError as e:
        raise LabelFileError(f"{source}: invalid label definitions:\n{e}") from e
    return [entry.to_label() for entry in parsed.labels]


def parse_yaml(stream: TextIO, *, source: str = "<yaml>") -> list[Label]:
    try:
        document = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise LabelFileError(f"failed to parse YAML from {source}: {e}") from e
    return _labels_from_document(document, source=source)


def parse_json(stream: TextIO, *, source: str = "<json>") -> list[Label]:
    try:
        document = json.load(stream)
    except json.JSONDecodeError as e:
        raise LabelFileError(f"failed to parse JSON from {source}: {e}") from e
    return _labels_from_document(document, source=source)


def parse_csv(stream: TextIO, *, source: str = "<csv>") -> list[Label]:
    reader = csv.reader(stream)
    try:
        header = next(reader)
    except StopIteration:
        raise LabelFileError(f"{source}: failed to read CSV header (file is empty)") from None
    except csv.Error as e:
        raise LabelFileError(f"{source}: failed to read CSV header: {e}") from e

    name_idx = color_idx = desc_idx = -1
    for i, column in enumerate(header):
        key = column.strip().lower()
        if key == "name":
            name_idx = i
        elif key == "color":
            color_idx = i
        elif key in {"description", "desc"}:
            desc_idx = i

    if name_idx == -1 or color_idx == -1:
        raise LabelFileError(f"{source}: CSV must have 'name' and 'color' columns")

    labels: list[Label] = []
    try:
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            if len(row) <= max(name_idx, color_idx):
                raise LabelFileError(
                    f"{source}: line {reader.line_num}: missing 'name' or 'color' value"
                )
            raw: dict[str, Any] = {"name": row[name_idx], "color": row[color_idx]}
            if 0 <= desc_idx < len(row):
                raw["description"] = row[desc_idx]
            try:
                labels.append(LabelEntry.model_validate(raw).to_label())
            except ValidationError as e:
                raise LabelFileError(f"{source}: line {reader.line_num}: {e}") from e
    except csv.Error as e:
        raise LabelFileError(f"{source}: failed to read CSV row: {e}") from e
    return labels


def _warn_on_duplicates(labels: Sequence[Label], *, source: str) -> None:
    counts = Counter(label.name for label in labels)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    if duplicates:
        logger.warning(
            "Duplicate label names; the last definition wins",
            extra={"source": source, "labels": duplicates},
        )


def parse_file(path: str | Path, *, stdin: TextIO | None = None) -> list[Label]:
    """Read label definitions from ``path`` (``-`` for YAML on stdin).

    Raises:
        LabelFileError: If the file cannot be opened or parsed.
    """

    if str(path) == STDIN_PATH:
        try:
            labels = parse_yaml(stdin or sys.stdin, source="<stdin>")
        except UnicodeDecodeError as e:
            raise LabelFileError(f"<stdin>: not valid UTF-8: {e}") from e
        _warn_on_duplicates(labels, source="<stdin>")
        return labels

    file_path = Path(path)
    source = str(file_path)
    ext = file_path.suffix.lower()

    try:
        with file_path.open(encoding="utf-8", newline="") as f:
            if ext in {".yml", ".yaml"}:
                labels = parse_yaml(f, source=source)
            elif ext == ".json":
                labels = parse_json(f, source=source)
            elif ext == ".csv":
                labels = parse_csv(f, source=source)
            else:
                try:
                    labels = parse_yaml(f, source=source)
                except LabelFileError as e:
                    raise LabelFileError(
                        f"unsupported file format (use .yml, .json, or .csv): {e}"
                    ) from e
    except UnicodeDecodeError as e:
        raise LabelFileError(f"{source}: not valid UTF-8: {e}") from e
    except OSError as e:
        raise LabelFileError(f"failed to open file: {e}") from e

    _warn_on_duplicates(labels, source=source)
    logger.debug("Parsed label file", extra={"path": source, "count": len(labels)})
    return labels


def _document(labels: Sequence[Label]) -> dict[str, list[dict[str, str]]]:
    return {"labels": [label.to_json() for label in labels]}


def write_yaml(stream: TextIO, labels: Sequence[Label]) -> None:
    yaml.safe_dump(
        _document(labels),
        stream,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        indent=2,
    )


def write_json(stream: TextIO, labels: Sequence[Label]) -> None:
    json.dump(_document(labels), stream, indent=2, ensure_ascii=False)
    stream.write("\n")
