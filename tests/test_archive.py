"""Tests for markedspace.archive."""

import logging

import pytest

from markedspace.archive import (
    ReconcileAction,
    decide,
    plan,
    should_archive,
    should_unarchive,
)
from markedspace.models import ContentStatus, NodeType


@pytest.fixture
def claimed(registry):
    registry.register("kept.md", "Not Orphaned Page")
    return registry


class TestShouldArchive:
    def test_archives_orphans(self, claimed, remote_document):
        assert should_archive(remote_document("Orphaned Page"), claimed)

    def test_keeps_claimed_pages(self, claimed, remote_document):
        assert not should_archive(remote_document("Not Orphaned Page"), claimed)

    def test_already_archived(self, claimed, remote_document):
        doc = remote_document("Orphaned Page", status=ContentStatus.ARCHIVED)
        assert not should_archive(doc, claimed)

    def test_never_archives_unmanaged(self, claimed, remote_document):
        doc = remote_document("Orphaned Page", managed=False)
        assert not should_archive(doc, claimed)

    def test_never_archives_folders(self, claimed, remote_document):
        doc = remote_document("Orphaned Page", node_type=NodeType.FOLDER)
        assert not should_archive(doc, claimed)


class TestShouldUnarchive:
    def test_unarchives_non_orphans(self, claimed, remote_document):
        doc = remote_document("Not Orphaned Page", status=ContentStatus.ARCHIVED)
        assert should_unarchive(doc, claimed)

    def test_current_pages_stay(self, claimed, remote_document):
        assert not should_unarchive(remote_document("Not Orphaned Page"), claimed)

    def test_archived_orphans_stay_archived(self, claimed, remote_document):
        doc = remote_document("Orphaned Page", status=ContentStatus.ARCHIVED)
        assert not should_unarchive(doc, claimed)

    def test_never_unarchives_unmanaged(self, claimed, remote_document):
        doc = remote_document(
            "Not Orphaned Page", status=ContentStatus.ARCHIVED, managed=False
        )
        assert not should_unarchive(doc, claimed)

    def test_never_unarchives_folders(self, claimed, remote_document):
        doc = remote_document(
            "Not Orphaned Page",
            status=ContentStatus.ARCHIVED,
            node_type=NodeType.FOLDER,
        )
        assert not should_unarchive(doc, claimed)


class TestLifecycle:
    def test_archive_then_restore(self, registry, remote_document):
        doc = remote_document("Come Back")
        assert decide(doc, registry) is ReconcileAction.ARCHIVE

        archived = doc.model_copy(update={"status": ContentStatus.ARCHIVED})
        assert decide(archived, registry) is ReconcileAction.KEEP

        registry.register("back.md", "Come Back")
        assert decide(archived, registry) is ReconcileAction.UNARCHIVE


class TestPlan:
    def test_one_decision_per_document(self, claimed, remote_document):
        docs = [
            remote_document("Not Orphaned Page", id="1"),
            remote_document("Orphaned Page", id="2", source="gone.md"),
            remote_document("Hand Made", id="3", managed=False),
        ]
        decisions = plan(docs, claimed)
        assert [d.action for d in decisions] == [
            ReconcileAction.KEEP,
            ReconcileAction.ARCHIVE,
            ReconcileAction.KEEP,
        ]
        assert decisions[1].document.id == "2"
        assert decisions[1].reason == 'orphaned "Orphaned Page" from gone.md'

    def test_logs_decisions(self, claimed, remote_document, caplog):
        docs = [
            remote_document("Orphaned Page"),
            remote_document(
                "Not Orphaned Page",
                status=ContentStatus.ARCHIVED,
                source="kept.md",
            ),
        ]
        with caplog.at_level(logging.INFO, logger="markedspace.archive"):
            plan(docs, claimed)

        assert (
            'archive: orphaned page "Orphaned Page" '
            "(probably created outside of markedspace)"
        ) in caplog.messages
        assert 'unarchive: restored "Not Orphaned Page" from kept.md' in (
            caplog.messages
        )
