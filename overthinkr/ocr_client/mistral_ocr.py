from __future__ import annotations

import base64
import mimetypes
from pathlib import Path
from typing import Any, Protocol

from overthinkr.ocr_client.types import OCROptions, OCRText
from overthinkr.utils.error_taxonomy import OCRParseError, UnsupportedFileTypeError

SUPPORTED_IMAGE_SUFFIXES = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".webp",
        ".bmp",
        ".gif",
        ".tif",
        ".tiff",
    }
)


class OCRProcessService(Protocol):
    def process(self, **kwargs: Any) -> Any: ...


class MistralOCRClient:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        process_service: OCRProcessService | None = None,
    ) -> None:
        self._api_key = api_key
        self._process_service = process_service

    def extract_text(self, *, image_path: Path, options: OCROptions) -> OCRText:
        _validate_supported_input(image_path)

        payload = self._request_ocr(image_path=image_path, options=options)

        pages = payload.get("pages")
        if not isinstance(pages, list):
            raise OCRParseError("OCR response missing pages list")

        page_markdowns: list[str] = []
        for page_payload in pages:
            page_data = page_payload if isinstance(page_payload, dict) else {}
            page_markdowns.append(str(page_data.get("markdown") or ""))

        return OCRText(
            text="\n\n".join(page_markdowns),
            ocr_model=str(payload.get("model") or options.model),
            pages_count=len(page_markdowns),
        )

    @staticmethod
    def build_request_payload(
        *, image_path: Path, options: OCROptions
    ) -> dict[str, Any]:
        return {
            "model": options.model,
            "document": {
                "type": "image_url",
                "image_url": _image_data_url(image_path),
            },
            "include_image_base64": False,
        }

    def _request_ocr(self, *, image_path: Path, options: OCROptions) -> dict[str, Any]:
        process_service = self._resolve_service()
        request_payload = self.build_request_payload(
            image_path=image_path, options=options
        )
        response = process_service.process(**request_payload)
        return _response_to_dict(response)

    def _resolve_service(self) -> OCRProcessService:
        if self._process_service is not None:
            return self._process_service

        if self._api_key is None:
            raise ValueError("Mistral API key is required when service is not provided")

        try:
            from mistralai import Mistral
        except ImportError as error:
            raise RuntimeError("mistralai package is not installed") from error

        client = Mistral(api_key=self._api_key)
        self._process_service = client.ocr
        return self._process_service


def _image_data_url(image_path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(image_path.name)
    encoded = base64.b64encode(image_path.read_bytes()).decode("ascii")
    return f"data:{mime_type or 'image/png'};base64,{encoded}"


def _response_to_dict(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response

    model_dump = getattr(response, "model_dump", None)
    if callable(model_dump):
        dumped = model_dump()
        if isinstance(dumped, dict):
            return dumped

    raise OCRParseError("Unsupported response type")


def _validate_supported_input(image_path: Path) -> None:
    suffix = image_path.suffix.lower()
    if suffix not in SUPPORTED_IMAGE_SUFFIXES:
        raise UnsupportedFileTypeError(
            f"Unsupported file type for OCR: {image_path.name} ({suffix or 'no extension'})"
        )
