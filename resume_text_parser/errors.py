from __future__ import annotations


class ResumeParserError(Exception):
    """Base class for every failure surfaced to callers."""


class ExtractionError(ResumeParserError):
    """The PDF could not be turned into text (corrupt, encrypted or scanned)."""


class ParseError(ResumeParserError):
    """The extracted text could not be run through the parsing pipeline."""
