from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from overthinkr.ocr_client.types import OCROptions, OCRText
from overthinkr.utils.error_taxonomy import EmptyInputError, OcrFailure

logger = logging.getLogger(__name__)


class OCRClientProtocol(Protocol):
    def extract_text(self, *, image_path: Path, options: OCROptions) -> OCRText: ...


def canonicalize_text(raw: str | None) -> str:
    text = (raw or "").strip()
    if not text:
        raise EmptyInputError("Input text is empty after trimming")
    return text


def extract_text_from_image(
    *,
    ocr_client: OCRClientProtocol,
    image_path: Path,
    options: OCROptions,
) -> str:
    try:
        ocr_text = ocr_client.extract_text(image_path=image_path, options=options)
    except Exception as error:  # noqa: BLE001
        raise OcrFailure(f"OCR failed for {image_path.name}: {error}") from error

    text = ocr_text.text.strip()
    if not text:
        raise OcrFailure(f"OCR recognized no text in {image_path.name}")

    logger.info(
        "OCR extracted %s characters from %s page(s)",
        len(text),
        ocr_text.pages_count,
    )
    return text
