from __future__ import annotations

import asyncio
import io
import logging
import re
import warnings
from pathlib import Path

import pdfplumber

from .errors import ExtractionError

logger = logging.getLogger(__name__)

# pdfminer reports every odd CropBox and font at WARNING level
logging.getLogger("pdfplumber").setLevel(logging.ERROR)
logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", category=UserWarning, module="pdfminer")

CID_RE = re.compile(r"\(cid:\d+\)")


def extract_text(source: str | Path | bytes) -> str:
    if isinstance(source, (bytes, bytearray)):
        handle = io.BytesIO(source)
        label = "<bytes>"
    else:
        handle = str(source)
        label = handle
    try:
        with pdfplumber.open(handle) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:
        raise ExtractionError(f"Could not read PDF {label}: {exc}") from exc
    text = CID_RE.sub("", "\n".join(pages))
    if not text.strip():
        raise ExtractionError(f"No text layer found in {label}")
    logger.debug("Extracted %d characters from %d page(s) of %s", len(text), len(pages), label)
    return text


async def extract_text_async(source: str | Path | bytes) -> str:
    return await asyncio.to_thread(extract_text, source)
