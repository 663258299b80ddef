"""Ordered named checklists for payment methods and communication channels.

Responsibilities:
  - Mark a named entry completed, idempotently.
  - Answer completion predicates for callers.
Must not:
  - Trigger lifecycle transitions; cross-component effects belong to the aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from ..domain.enums import Notice
from ..domain.errors import UnknownChannel, ValidationError
from ..domain.models import ChecklistEntry


@dataclass(frozen=True)
class CompletionResult:
    entries: tuple[ChecklistEntry, ...]
    notices: tuple[Notice, ...] = ()

    @property
    def changed(self) -> bool:
        return Notice.ALREADY_COMPLETED not in self.notices


def build_checklist(names: Iterable[str]) -> tuple[ChecklistEntry, ...]:
    entries: list[ChecklistEntry] = []
    seen: set[str] = set()
    for name in names:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("checklist entry name must be non-empty")
        if cleaned in seen:
            raise ValidationError(f"duplicate checklist entry: {cleaned!r}")
        seen.add(cleaned)
        entries.append(ChecklistEntry(name=cleaned))
    return tuple(entries)


def complete(entries: Sequence[ChecklistEntry], name: str) -> CompletionResult:
    current = tuple(entries)
    for index, entry in enumerate(current):
        if entry.name != name:
            continue
        if entry.completed:
            return CompletionResult(entries=current, notices=(Notice.ALREADY_COMPLETED,))
        updated = current[:index] + (replace(entry, completed=True),) + current[index + 1 :]
        return CompletionResult(entries=updated)
    raise UnknownChannel(name)


def all_completed(entries: Sequence[ChecklistEntry]) -> bool:
    return all(entry.completed for entry in entries)


def pending(entries: Sequence[ChecklistEntry]) -> list[str]:
    return [entry.name for entry in entries if not entry.completed]
