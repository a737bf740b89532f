"""Archive policy for documents already published to the space.

Decides, for each remote document, whether it should be archived (its
source is gone), restored (its source came back) or left alone. The policy
only decides; the remote calls belong to the orchestration layer.

Only managed pages are ever touched. Pages created by hand in the space,
and folders, are always kept.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from .models import RemoteDocument

if TYPE_CHECKING:
    from .link_registry import LinkRegistry

logger = logging.getLogger(__name__)


class ReconcileAction(str, Enum):
    """Outcome of the archive policy for one remote document."""

    KEEP = "keep"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"


class ReconcileDecision(BaseModel):
    """Decision for one remote document.

    Attributes:
        document: The remote document.
        action: What to do with it.
        reason: Human readable explanation, as logged.
    """

    document: RemoteDocument
    action: ReconcileAction
    reason: str = ""

    model_config = {"frozen": True}


def should_archive(document: RemoteDocument, registry: LinkRegistry) -> bool:
    """True for a managed, not yet archived page no local document claims."""
    if document.is_folder:
        return False
    return (
        not document.is_archived
        and document.managed
        and registry.is_orphaned(document)
    )


def should_unarchive(document: RemoteDocument, registry: LinkRegistry) -> bool:
    """True for a managed, archived page whose title is claimed again."""
    if document.is_folder:
        return False
    return (
        document.is_archived
        and document.managed
        and not registry.is_orphaned(document)
    )


def decide(document: RemoteDocument, registry: LinkRegistry) -> ReconcileAction:
    if should_archive(document, registry):
        return ReconcileAction.ARCHIVE
    if should_unarchive(document, registry):
        return ReconcileAction.UNARCHIVE
    return ReconcileAction.KEEP


def _reason(document: RemoteDocument, action: ReconcileAction) -> str:
    if action is ReconcileAction.UNARCHIVE:
        return f'restored "{document.title}" from {document.path or ""}'
    if action is ReconcileAction.ARCHIVE:
        if document.path is not None:
            return f'orphaned "{document.title}" from {document.path}'
        return (
            f'orphaned page "{document.title}" '
            "(probably created outside of markedspace)"
        )
    return ""


def plan(
    documents: Iterable[RemoteDocument], registry: LinkRegistry
) -> list[ReconcileDecision]:
    """Apply the policy to every remote document of the space.

    Args:
        documents: Remote documents, in any order.
        registry: Registry holding every local document of the run.

    Returns:
        One decision per document, in input order. Documents to keep are
        included with ``ReconcileAction.KEEP``.
    """
    decisions: list[ReconcileDecision] = []
    for document in documents:
        action = decide(document, registry)
        reason = _reason(document, action)
        if action is not ReconcileAction.KEEP:
            logger.info("%s: %s", action.value, reason)
        decisions.append(
            ReconcileDecision(document=document, action=action, reason=reason)
        )
    return decisions
