from __future__ import annotations

import logging
import time
from pathlib import Path

from overthinkr.config.settings import Settings
from overthinkr.llm_client.base import AnalysisClient
from overthinkr.llm_client.gemini_client import GeminiAnalysisClient
from overthinkr.ocr_client.mistral_ocr import MistralOCRClient
from overthinkr.ocr_client.types import OCROptions
from overthinkr.pipeline.models import InputSource, SessionState
from overthinkr.pipeline.session import AnalysisSession
from overthinkr.pipeline.text_source import (
    OCRClientProtocol,
    canonicalize_text,
    extract_text_from_image,
)
from overthinkr.pipeline.validate_output import parse_analysis_payload
from overthinkr.prompts.manager import PromptManager, PromptSet, build_prompt
from overthinkr.utils.error_taxonomy import (
    AnalysisError,
    EmptyInputError,
    OcrFailure,
    to_failure,
)
from overthinkr.utils.logging import clear_log_context, set_log_context

logger = logging.getLogger(__name__)


class ToneAnalysisPipeline:
    """Drives one session through OCR, prompting, the LLM call and validation.

    Every failure is converted into a ``failure`` transition on the session;
    nothing raised by a stage escapes ``submit_text`` or ``submit_image``.
    """

    def __init__(
        self,
        *,
        llm_client: AnalysisClient,
        prompt_set: PromptSet,
        ocr_client: OCRClientProtocol | None = None,
        ocr_options: OCROptions | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.prompt_set = prompt_set
        self.ocr_client = ocr_client
        self.ocr_options = ocr_options or OCROptions()

    def submit_text(self, session: AnalysisSession, text: str | None) -> SessionState:
        try:
            canonical_text = canonicalize_text(text)
        except EmptyInputError:
            logger.info("Submit blocked: input text is empty")
            return session.snapshot()

        if not session.try_begin(canonical_text):
            logger.info("Submit ignored: an analysis is already in flight")
            return session.snapshot()

        return self._run(session, input_source="text", canonical_text=canonical_text)

    def submit_image(
        self, session: AnalysisSession, image_path: str | Path | None
    ) -> SessionState:
        if image_path is None or not str(image_path).strip():
            logger.info("Submit blocked: no image provided")
            return session.snapshot()

        if not session.try_begin(None):
            logger.info("Submit ignored: an analysis is already in flight")
            return session.snapshot()

        return self._run(session, input_source="image", image_path=Path(image_path))

    def close(self) -> None:
        close = getattr(self.llm_client, "close", None)
        if callable(close):
            close()

    def _run(
        self,
        session: AnalysisSession,
        *,
        input_source: InputSource,
        canonical_text: str | None = None,
        image_path: Path | None = None,
    ) -> SessionState:
        started_at = time.perf_counter()
        set_log_context(input_source=input_source)
        try:
            logger.info("Analysis started")
            if canonical_text is None:
                set_log_context(stage="ocr")
                canonical_text = self._extract_image_text(image_path)
                session.set_input_text(canonical_text)

            set_log_context(stage="prompt")
            prompt = build_prompt(canonical_text, self.prompt_set)

            set_log_context(stage="llm")
            raw_text = self.llm_client.invoke(prompt)

            set_log_context(stage="validate")
            result = parse_analysis_payload(raw_text, self.prompt_set.schema)
        except AnalysisError as error:
            failure = to_failure(error)
            logger.warning(
                "Analysis failed: %s",
                error,
                extra={
                    "error_code": failure.code,
                    "duration_ms": _elapsed_ms(started_at),
                },
            )
            return session.fail(failure)
        except Exception as error:  # noqa: BLE001
            failure = to_failure(error)
            logger.exception(
                "Analysis failed unexpectedly",
                extra={
                    "error_code": failure.code,
                    "duration_ms": _elapsed_ms(started_at),
                },
            )
            return session.fail(failure)
        finally:
            clear_log_context()

        logger.info(
            "Analysis completed: tone=%s score=%s replies=%s",
            result.tone,
            result.score,
            len(result.replies),
            extra={"duration_ms": _elapsed_ms(started_at)},
        )
        return session.complete(result)

    def _extract_image_text(self, image_path: Path | None) -> str:
        if self.ocr_client is None or image_path is None:
            raise OcrFailure("OCR client is not configured")
        return extract_text_from_image(
            ocr_client=self.ocr_client,
            image_path=image_path,
            options=self.ocr_options,
        )


def build_default_pipeline(settings: Settings) -> ToneAnalysisPipeline:
    prompt_manager = PromptManager(settings.resolved_prompts_root)
    prompt_set = prompt_manager.load_prompt_set(
        prompt_name=settings.prompt_name,
        version=settings.prompt_version,
    )
    return ToneAnalysisPipeline(
        llm_client=GeminiAnalysisClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.gemini_timeout_seconds,
        ),
        prompt_set=prompt_set,
        ocr_client=MistralOCRClient(api_key=settings.mistral_api_key),
        ocr_options=OCROptions(model=settings.ocr_model),
    )


def _elapsed_ms(started_at: float) -> float:
    return round((time.perf_counter() - started_at) * 1000, 1)
