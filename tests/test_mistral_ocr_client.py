from __future__ import annotations

import base64
from pathlib import Path
from types import SimpleNamespace

import pytest

from overthinkr.ocr_client.mistral_ocr import MistralOCRClient
from overthinkr.ocr_client.types import OCROptions
from overthinkr.utils.error_taxonomy import OCRParseError, UnsupportedFileTypeError


class FakeProcessService:
    def __init__(self, response: object | None = None) -> None:
        self.calls: list[dict[str, object]] = []
        self._response = response

    def process(self, **kwargs: object) -> object:
        self.calls.append(kwargs)
        if self._response is not None:
            return self._response
        return {
            "model": "mistral-ocr-2505",
            "pages": [
                {"markdown": "k thanks."},
                {"markdown": "see you later"},
            ],
        }


def _write_image(tmp_path: Path, name: str = "shot.png") -> Path:
    image_path = tmp_path / name
    image_path.write_bytes(b"fake-png-bytes")
    return image_path


def test_extract_text_sends_image_as_data_url(tmp_path: Path) -> None:
    service = FakeProcessService()
    client = MistralOCRClient(process_service=service)
    image_path = _write_image(tmp_path)

    result = client.extract_text(
        image_path=image_path, options=OCROptions(model="mistral-ocr-latest")
    )

    assert result.text == "k thanks.\n\nsee you later"
    assert result.ocr_model == "mistral-ocr-2505"
    assert result.pages_count == 2

    assert len(service.calls) == 1
    call = service.calls[0]
    assert call["model"] == "mistral-ocr-latest"
    document = call["document"]
    assert isinstance(document, dict)
    assert document["type"] == "image_url"
    expected = base64.b64encode(b"fake-png-bytes").decode("ascii")
    assert document["image_url"] == f"data:image/png;base64,{expected}"


def test_extract_text_accepts_model_dump_responses(tmp_path: Path) -> None:
    response = SimpleNamespace(
        model_dump=lambda: {"pages": [{"markdown": "hello"}]},
    )
    client = MistralOCRClient(process_service=FakeProcessService(response=response))

    result = client.extract_text(
        image_path=_write_image(tmp_path), options=OCROptions(model="ocr-x")
    )

    assert result.text == "hello"
    assert result.ocr_model == "ocr-x"


def test_extract_text_rejects_unsupported_file_type(tmp_path: Path) -> None:
    service = FakeProcessService()
    client = MistralOCRClient(process_service=service)
    text_file = tmp_path / "notes.txt"
    text_file.write_text("hello", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        client.extract_text(image_path=text_file, options=OCROptions())

    assert service.calls == []


def test_extract_text_requires_pages_list(tmp_path: Path) -> None:
    client = MistralOCRClient(
        process_service=FakeProcessService(response={"model": "m"})
    )

    with pytest.raises(OCRParseError, match="pages"):
        client.extract_text(image_path=_write_image(tmp_path), options=OCROptions())


def test_extract_text_requires_api_key_without_injected_service(
    tmp_path: Path,
) -> None:
    client = MistralOCRClient()

    with pytest.raises(ValueError, match="API key"):
        client.extract_text(image_path=_write_image(tmp_path), options=OCROptions())
