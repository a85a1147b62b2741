"""
app/services/duplicate_resolver.py

Classifies each row against the employees already in the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from app.domain.employee_import import DuplicateAction, DuplicatePolicy, ImportRow, Severity

logger = logging.getLogger(__name__)


class ExistingKeyLookup(Protocol):
    def find_existing_ids(self, employee_ids: Iterable[str]) -> set[str]:
        ...


@dataclass(frozen=True)
class DuplicateDecision:
    action: str
    message: str | None = None
    severity: str | None = None

    @property
    def persists(self) -> bool:
        return self.action in {DuplicateAction.INSERT, DuplicateAction.UPDATE}


def classify(row: ImportRow, existing_keys: set[str] | frozenset[str], policy: str) -> DuplicateDecision:
    """
    Decide insert, update, skip or reject for one row under ``policy``.
    """

    employee_id = row.employee_id
    if not employee_id:
        return DuplicateDecision(
            action=DuplicateAction.REJECT,
            message="employee_id is required",
            severity=Severity.ERROR,
        )

    if employee_id not in existing_keys:
        return DuplicateDecision(action=DuplicateAction.INSERT)

    if policy == DuplicatePolicy.SKIP:
        return DuplicateDecision(
            action=DuplicateAction.SKIP,
            message=f"employee_id={employee_id} skipped due to duplicate",
            severity=Severity.WARNING,
        )
    if policy == DuplicatePolicy.ERROR:
        return DuplicateDecision(
            action=DuplicateAction.REJECT,
            message=f"employee_id={employee_id} already exists",
            severity=Severity.ERROR,
        )
    return DuplicateDecision(action=DuplicateAction.UPDATE)


def preload_existing(lookup: ExistingKeyLookup, rows: Iterable[ImportRow]) -> frozenset[str]:
    """
    Run one existence lookup for every distinct non-blank employee_id.
    """

    keys = sorted({row.employee_id for row in rows if row.employee_id})
    if not keys:
        return frozenset()

    existing = frozenset(lookup.find_existing_ids(keys))
    logger.info("Existence check: %d of %d employee ids already stored", len(existing), len(keys))
    return existing
