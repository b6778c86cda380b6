from __future__ import annotations

from typing import Protocol


class AnalysisClient(Protocol):
    def invoke(self, prompt: str) -> str: ...
