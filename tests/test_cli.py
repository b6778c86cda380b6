from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from overthinkr import cli
from overthinkr.pipeline.orchestrator import ToneAnalysisPipeline
from overthinkr.prompts.manager import PromptSet


class FakeLLMClient:
    def __init__(self, raw_text: str) -> None:
        self._raw_text = raw_text
        self.calls = 0
        self.closed = False

    def invoke(self, prompt: str) -> str:
        del prompt
        self.calls += 1
        return self._raw_text

    def close(self) -> None:
        self.closed = True


def _clear_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OVERTHINKR_GEMINI_API_KEY",
        "GEMINI_KEY",
        "GOOGLE_API_KEY",
        "OVERTHINKR_MISTRAL_API_KEY",
        "MISTRAL_API_KEY",
    ):
        # registers the variable so values loaded from an env file are undone
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)


def test_run_analysis_exit_codes(
    prompt_set: PromptSet, valid_payload: dict[str, Any]
) -> None:
    ok_pipeline = ToneAnalysisPipeline(
        llm_client=FakeLLMClient(json.dumps(valid_payload)), prompt_set=prompt_set
    )
    bad_pipeline = ToneAnalysisPipeline(
        llm_client=FakeLLMClient("nope"), prompt_set=prompt_set
    )

    code, payload = cli.run_analysis(pipeline=ok_pipeline, text="k thanks.")
    assert code == cli.EXIT_OK
    assert payload["phase"] == "success"
    assert payload["result"] == valid_payload

    code, payload = cli.run_analysis(pipeline=bad_pipeline, text="k thanks.")
    assert code == cli.EXIT_FAILURE
    assert payload["error"]["code"] == "NOT_JSON"

    code, payload = cli.run_analysis(pipeline=ok_pipeline, text="  ")
    assert code == cli.EXIT_BLOCKED
    assert payload["phase"] == "idle"


def test_main_analyze_prints_session_json(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    prompt_set: PromptSet,
    valid_payload: dict[str, Any],
    tmp_path: Path,
) -> None:
    llm_client = FakeLLMClient(json.dumps(valid_payload))
    monkeypatch.setattr(
        cli,
        "build_default_pipeline",
        lambda settings: ToneAnalysisPipeline(
            llm_client=llm_client, prompt_set=prompt_set
        ),
    )

    exit_code = cli.main(
        ["--env-file", str(tmp_path / "missing.env"), "analyze", "--text", "k thanks."]
    )

    assert exit_code == 0
    assert llm_client.calls == 1
    assert llm_client.closed is True
    printed = json.loads(capsys.readouterr().out)
    assert printed["phase"] == "success"
    assert printed["input_text"] == "k thanks."


def test_main_validate_config_reports_missing_keys(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    _clear_keys(monkeypatch)
    monkeypatch.chdir(tmp_path)

    exit_code = cli.main(["--env-file", "missing.env", "validate-config"])

    assert exit_code == 1
    assert "gemini_api_key" in capsys.readouterr().err


def test_main_validate_config_reads_env_file(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    _clear_keys(monkeypatch)
    monkeypatch.chdir(tmp_path)
    env_file = tmp_path / "test.env"
    env_file.write_text(
        "GEMINI_KEY=gemini-from-file\nMISTRAL_API_KEY=mistral-from-file\n",
        encoding="utf-8",
    )

    exit_code = cli.main(["--env-file", str(env_file), "validate-config"])

    assert exit_code == 0
    assert "Config is valid." in capsys.readouterr().out
