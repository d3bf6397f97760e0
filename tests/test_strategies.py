"""Tests for the inline-text and remote-reference transfer strategies."""

import pytest

from engine.base import FileReferences, InlineText
from orchestration.strategies import (
    InlineTextStrategy,
    NoDocumentsAvailable,
    RemoteReferenceStrategy,
    read_text_head,
    select_relevant_files,
)
from schemas.documents import UploadedDocument
from sources.base import DocumentSourceError

from fakes import FakeSource, active_document, source_file


@pytest.fixture
def drive():
    return FakeSource(
        [
            (source_file("1", "clients.csv", "text/csv"), b"name,email\nAcme,sales@acme.com\n"),
            (source_file("2", "brochure.pdf", "application/pdf"), b"%PDF-1.4"),
            (source_file("3", "notes.txt"), "Company: 에이스 테크".encode()),
        ]
    )


# =========================================================================
# Inline text
# =========================================================================


class TestInlineTextStrategy:

    async def test_combines_readable_files(self, drive):
        content = await InlineTextStrategy(drive).prepare()

        assert isinstance(content, InlineText)
        assert content.text == (
            "=== File: clients.csv ===\nname,email\nAcme,sales@acme.com\n\n"
            "\n\n"
            "=== File: notes.txt ===\nCompany: 에이스 테크\n"
        )
        assert content.source_name == "2 files from Google Drive"
        assert drive.downloaded == ["1", "3"]

    async def test_respects_max_files(self, drive):
        content = await InlineTextStrategy(drive, max_files=1).prepare()
        assert "notes.txt" not in content.text
        assert content.source_name == "1 files from Google Drive"

    async def test_truncates_to_max_chars(self):
        source = FakeSource([(source_file("1", "big.txt"), b"x" * 100)])
        content = await InlineTextStrategy(source, max_chars=10).prepare()
        assert content.text == "=== File: big.txt ===\nxxxxxxxxxx\n"

    async def test_skips_unreadable_files(self, drive):
        drive.failing = {"1"}
        content = await InlineTextStrategy(drive).prepare()
        assert content.source_name == "1 files from Google Drive"
        assert "clients.csv" not in content.text

    async def test_nothing_readable(self, drive):
        drive.failing = {"1", "3"}
        with pytest.raises(NoDocumentsAvailable) as exc_info:
            await InlineTextStrategy(drive).prepare()
        assert "CSV, TXT supported" in exc_info.value.message

    async def test_only_binary_documents(self):
        source = FakeSource([(source_file("2", "brochure.pdf", "application/pdf"), b"%PDF")])
        with pytest.raises(NoDocumentsAvailable):
            await InlineTextStrategy(source).prepare()
        assert source.downloaded == []

    async def test_listing_errors_propagate(self):
        source = FakeSource(list_error=DocumentSourceError("Drive unavailable"))
        with pytest.raises(DocumentSourceError):
            await InlineTextStrategy(source).prepare()


def test_read_text_head_large_file(tmp_path):
    path = tmp_path / "big.csv"
    path.write_text("a" * 1000)
    assert read_text_head(path, 10) == "a" * 10


def test_read_text_head_replaces_bad_bytes(tmp_path):
    path = tmp_path / "latin.txt"
    path.write_bytes(b"caf\xe9")
    assert read_text_head(path, 100) == "caf\ufffd"


# =========================================================================
# Remote reference
# =========================================================================


class TestRemoteReferenceStrategy:

    async def test_references_active_files(self):
        documents = [
            active_document("files/1", "clients.pdf"),
            UploadedDocument(name="files/2", display_name="pending.pdf"),
        ]
        content = await RemoteReferenceStrategy(documents, max_files_per_request=5).prepare()

        assert isinstance(content, FileReferences)
        assert [f.name for f in content.files] == ["files/1"]

    async def test_no_active_files(self):
        documents = [UploadedDocument(name="files/2", display_name="pending.pdf")]
        with pytest.raises(NoDocumentsAvailable) as exc_info:
            await RemoteReferenceStrategy(documents).prepare()
        assert "sync your Google Drive" in exc_info.value.message

    async def test_limits_files_per_request(self):
        documents = [active_document(f"files/{i}", f"doc{i}.pdf") for i in range(3)]
        content = await RemoteReferenceStrategy(documents, max_files_per_request=1).prepare()
        assert [f.name for f in content.files] == ["files/0"]


class TestSelectRelevantFiles:

    def test_prefers_matching_names(self):
        documents = [
            active_document("files/1", "invoices.pdf"),
            active_document("files/2", "manufacturers.pdf"),
        ]
        selected = select_relevant_files("find manufacturers in Ohio", documents, 1)
        assert [d.name for d in selected] == ["files/2"]

    def test_short_words_ignored(self):
        documents = [
            active_document("files/1", "invoices.pdf"),
            active_document("files/2", "ohio.pdf"),
        ]
        selected = select_relevant_files("in ohi", documents, 1)
        assert [d.name for d in selected] == ["files/1"]

    def test_under_limit_returns_all(self):
        documents = [active_document("files/1", "a.pdf")]
        assert select_relevant_files(None, documents, 3) == documents
