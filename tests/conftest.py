from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from overthinkr.prompts.manager import PromptManager, PromptSet

PROMPTS_ROOT = Path(__file__).resolve().parents[1] / "overthinkr" / "prompts"


@pytest.fixture
def prompt_set() -> PromptSet:
    return PromptManager(PROMPTS_ROOT).load_prompt_set(
        prompt_name="tone_analysis", version="v001"
    )


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return {
        "tone": "Passive-aggressive",
        "score": 7,
        "explanation": "...",
        "confidence": 80,
        "replies": [
            {"type": "Confident", "msg": "Got it."},
            {"type": "Calm", "msg": "Sounds good."},
            {"type": "Witty", "msg": "Noted, boss."},
        ],
    }
