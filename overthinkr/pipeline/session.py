from __future__ import annotations

from dataclasses import replace
from threading import Lock

from overthinkr.pipeline.models import AnalysisResult, SessionState
from overthinkr.utils.error_taxonomy import AnalysisFailure


class InvalidTransitionError(RuntimeError):
    """Raised when a session transition is attempted from the wrong phase."""


class AnalysisSession:
    """Process-local holder of one analysis session.

    Phases move idle -> processing -> success | failure, and any non-processing
    phase may start a new run. ``try_begin`` is the only way into ``processing``
    and is atomic, so two submits can never both own a run.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._state = SessionState()

    @property
    def phase(self) -> str:
        return self.snapshot().phase

    def snapshot(self) -> SessionState:
        with self._lock:
            return self._state

    def try_begin(self, input_text: str | None) -> bool:
        with self._lock:
            if self._state.phase == "processing":
                return False
            self._state = SessionState(phase="processing", input_text=input_text)
            return True

    def set_input_text(self, input_text: str) -> None:
        with self._lock:
            self._require_processing("set_input_text")
            self._state = replace(self._state, input_text=input_text)

    def complete(self, result: AnalysisResult) -> SessionState:
        with self._lock:
            self._require_processing("complete")
            self._state = replace(self._state, phase="success", result=result)
            return self._state

    def fail(self, failure: AnalysisFailure) -> SessionState:
        with self._lock:
            self._require_processing("fail")
            self._state = replace(self._state, phase="failure", error=failure)
            return self._state

    def _require_processing(self, action: str) -> None:
        if self._state.phase != "processing":
            raise InvalidTransitionError(
                f"Cannot {action} while session is {self._state.phase}"
            )
