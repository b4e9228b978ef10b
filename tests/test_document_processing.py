"""Unit tests for document loading and chunking."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from ragdesk import Document, DocumentLoader, InvalidConfigError, TextChunker


def test_load_text_bytes():
    text = DocumentLoader.load_bytes(b"# Title\n\nBody text", file_name="README.md")
    assert text == "# Title\n\nBody text"


def test_load_bytes_without_file_name_assumes_text():
    assert DocumentLoader.load_bytes("café".encode()) == "café"


def test_load_document_from_disk(tmp_path):
    doc_path = tmp_path / "notes.txt"
    doc_path.write_text("Machine Learning notes", encoding="utf-8")

    assert DocumentLoader.load_document(doc_path) == "Machine Learning notes"


def test_load_nonexistent_file():
    with pytest.raises(FileNotFoundError):
        DocumentLoader.load_document(Path("nonexistent_file.txt"))


def test_unsupported_file_type():
    with pytest.raises(ValueError, match="Unsupported file type"):
        DocumentLoader.load_bytes(b"data", file_name="test.invalid")


def test_invalid_utf8_raises_value_error():
    with pytest.raises(ValueError):  # noqa: PT011
        DocumentLoader.load_bytes(b"\xff\xfe\xfa", file_name="broken.txt")


def test_pdf_pages_are_marked():
    pages = [Mock(extract_text=Mock(return_value=f"page {i}")) for i in (1, 2)]
    with patch("ragdesk.document_processing.pypdf.PdfReader") as reader:
        reader.return_value.pages = pages
        text = DocumentLoader.load_bytes(b"%PDF-1.4", file_name="manual.PDF")

    assert "--- Page 1 ---\npage 1" in text
    assert "--- Page 2 ---\npage 2" in text


def test_unreadable_pdf_raises_value_error():
    with pytest.raises(ValueError, match="Unreadable PDF"):
        DocumentLoader.load_bytes(b"not a pdf", file_name="broken.pdf")


@pytest.mark.parametrize(
    ("chunk_size", "overlap"),
    [(0, 0), (10, -1), (10, 10), (10, 20)],
)
def test_invalid_chunker_configuration(chunk_size, overlap):
    with pytest.raises(InvalidConfigError):
        TextChunker(chunk_size=chunk_size, overlap=overlap)


def test_chunk_creation(text_chunker_factory):
    chunker = text_chunker_factory("small")
    text = "This is a test document. " * 20

    segments = chunker.chunk_text(text, metadata={"fileName": "test_doc"})

    assert len(segments) > 1
    for position, segment in enumerate(segments):
        assert segment.text
        assert len(segment.text) <= chunker.chunk_size
        assert segment.metadata["fileName"] == "test_doc"
        assert segment.metadata["index"] == str(position)
        assert text[segment.start : segment.end] == segment.text


def test_empty_text_chunking():
    assert TextChunker().chunk_text("") == []


def test_short_document_yields_single_segment(text_chunker_factory):
    chunker = text_chunker_factory("small")
    document = Document(text="Short text.", metadata={"fileName": "short.txt"})

    segments = chunker.split(document)

    assert len(segments) == 1
    assert segments[0].text == "Short text."
    assert segments[0].metadata == {"fileName": "short.txt", "index": "0"}


def test_chunk_overlap():
    chunker = TextChunker(chunk_size=50, overlap=10)
    text = "A" * 100

    segments = chunker.chunk_text(text)

    assert [(s.start, s.end) for s in segments] == [(0, 50), (40, 90), (80, 100)]
    for previous, current in zip(segments, segments[1:], strict=False):
        assert previous.end - current.start == 10
        assert previous.text[-10:] == current.text[:10]


def test_chunks_do_not_split_words():
    chunker = TextChunker(chunk_size=20, overlap=5)
    segments = chunker.chunk_text("The cat sat on the mat. The dog ran in the park.")

    assert segments[0].text == "The cat sat on the"
    assert segments[-1].end == 48


@pytest.mark.parametrize(
    "text",
    [
        "The cat sat on the mat. The dog ran in the park.",
        "word " * 300,
        "x" * 1234,
        "Line one\nLine two\n\nParagraph two has more words in it.\n" * 25,
        "   leading and trailing whitespace   ",
    ],
)
@pytest.mark.parametrize(("chunk_size", "overlap"), [(20, 5), (100, 20), (64, 0)])
def test_segments_reconstruct_document(text, chunk_size, overlap):
    chunker = TextChunker(chunk_size=chunk_size, overlap=overlap)

    segments = chunker.split(Document(text=text))

    assert TextChunker.join_segments(segments) == text
    assert segments[0].start == 0
    assert segments[-1].end == len(text)


def test_split_does_not_mutate_document_metadata():
    metadata = {"fileName": "doc.txt"}
    document = Document(text="abc " * 100, metadata=metadata)

    TextChunker(chunk_size=50, overlap=5).split(document)

    assert metadata == {"fileName": "doc.txt"}
