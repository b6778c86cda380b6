from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from overthinkr.utils.error_taxonomy import AnalysisFailure

Phase = Literal["idle", "processing", "success", "failure"]
InputSource = Literal["text", "image"]


@dataclass(frozen=True, slots=True)
class ReplyOption:
    type: str
    msg: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "msg": self.msg}


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    tone: str
    score: int
    explanation: str
    confidence: int
    replies: tuple[ReplyOption, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tone": self.tone,
            "score": self.score,
            "explanation": self.explanation,
            "confidence": self.confidence,
            "replies": [reply.to_dict() for reply in self.replies],
        }


@dataclass(frozen=True, slots=True)
class SessionState:
    phase: Phase = "idle"
    input_text: str | None = None
    result: AnalysisResult | None = None
    error: AnalysisFailure | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "input_text": self.input_text,
            "result": self.result.to_dict() if self.result is not None else None,
            "error": self.error.to_dict() if self.error is not None else None,
        }
