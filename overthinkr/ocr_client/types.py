from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OCROptions:
    model: str = "mistral-ocr-latest"


@dataclass(frozen=True, slots=True)
class OCRText:
    text: str
    ocr_model: str
    pages_count: int
