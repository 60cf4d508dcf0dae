import asyncio
import io

import pytest

from resume_text_parser import extractor
from resume_text_parser.errors import ExtractionError
from resume_text_parser.extractor import extract_text, extract_text_async


class FakePage:
    def __init__(self, text):
        self._text = text

    def extract_text(self):
        return self._text


class FakePdf:
    def __init__(self, texts):
        self.pages = [FakePage(text) for text in texts]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def fake_open(texts, seen=None):
    def _open(handle):
        if seen is not None:
            seen.append(handle)
        return FakePdf(texts)

    return _open


def test_pages_are_joined_and_cid_artifacts_removed(monkeypatch):
    monkeypatch.setattr(extractor.pdfplumber, "open", fake_open(["Jane (cid:12)Doe", None]))
    assert extract_text("resume.pdf") == "Jane Doe\n"


def test_bytes_are_wrapped_in_a_stream(monkeypatch):
    seen = []
    monkeypatch.setattr(extractor.pdfplumber, "open", fake_open(["text"], seen))
    extract_text(b"%PDF-1.7")
    assert isinstance(seen[0], io.BytesIO)


def test_paths_are_passed_as_strings(tmp_path, monkeypatch):
    seen = []
    monkeypatch.setattr(extractor.pdfplumber, "open", fake_open(["text"], seen))
    extract_text(tmp_path / "cv.pdf")
    assert seen == [str(tmp_path / "cv.pdf")]


def test_scanned_pdf_without_text_fails(monkeypatch):
    monkeypatch.setattr(extractor.pdfplumber, "open", fake_open([None, "  \n"]))
    with pytest.raises(ExtractionError):
        extract_text("scan.pdf")


def test_unreadable_pdf_fails(monkeypatch):
    def broken(handle):
        raise ValueError("not a PDF")

    monkeypatch.setattr(extractor.pdfplumber, "open", broken)
    with pytest.raises(ExtractionError) as info:
        extract_text(b"garbage")
    assert isinstance(info.value.__cause__, ValueError)


def test_async_extraction_runs_in_a_thread(monkeypatch):
    monkeypatch.setattr(extractor.pdfplumber, "open", fake_open(["Jane Doe"]))
    assert asyncio.run(extract_text_async(b"%PDF")) == "Jane Doe"
