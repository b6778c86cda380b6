from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any

import yaml

VERSION_RE = re.compile(r"^v(\d{3})$")

TEMPLATE_FILENAME = "prompt_template.txt"
SCHEMA_FILENAME = "schema.json"
META_FILENAME = "meta.yaml"


@dataclass(frozen=True, slots=True)
class PromptSet:
    prompt_name: str
    version: str
    template_text: str
    schema: dict[str, Any]
    meta: dict[str, Any]
    prompt_dir: Path


class PromptManager:
    """Reads versioned prompt sets from ``<root>/<name>/vNNN/``."""

    def __init__(self, prompts_root: Path | str) -> None:
        self.prompts_root = Path(prompts_root)

    def list_prompt_names(self) -> list[str]:
        if not self.prompts_root.exists():
            return []

        names: list[str] = []
        for child in self.prompts_root.iterdir():
            if not child.is_dir():
                continue
            if child.name.startswith("__"):
                continue
            if self.list_versions(child.name):
                names.append(child.name)
        return sorted(names)

    def list_versions(self, prompt_name: str) -> list[str]:
        prompt_dir = self.prompts_root / prompt_name
        if not prompt_dir.exists() or not prompt_dir.is_dir():
            return []

        versions: list[str] = []
        for child in prompt_dir.iterdir():
            if not child.is_dir():
                continue
            if VERSION_RE.match(child.name):
                versions.append(child.name)

        return sorted(versions, key=_version_to_int)

    def load_prompt_set(self, *, prompt_name: str, version: str) -> PromptSet:
        prompt_dir = self._prompt_dir(prompt_name=prompt_name, version=version)
        template_path = prompt_dir / TEMPLATE_FILENAME
        schema_path = prompt_dir / SCHEMA_FILENAME
        meta_path = prompt_dir / META_FILENAME

        if not template_path.exists():
            raise FileNotFoundError(f"prompt template not found: {template_path}")
        if not schema_path.exists():
            raise FileNotFoundError(f"schema not found: {schema_path}")

        template_text = template_path.read_text(encoding="utf-8")
        _validate_template_text(template_text)
        schema = _validate_schema_text(schema_path.read_text(encoding="utf-8"))

        meta: dict[str, Any] = {}
        if meta_path.exists():
            parsed_meta = yaml.safe_load(meta_path.read_text(encoding="utf-8")) or {}
            if isinstance(parsed_meta, dict):
                meta = parsed_meta

        return PromptSet(
            prompt_name=prompt_name,
            version=version,
            template_text=template_text,
            schema=schema,
            meta=meta,
            prompt_dir=prompt_dir,
        )

    def _prompt_dir(self, *, prompt_name: str, version: str) -> Path:
        if not VERSION_RE.match(version):
            raise ValueError(f"Invalid prompt version format: {version}")
        return self.prompts_root / prompt_name / version


def build_prompt(text: str, prompt_set: PromptSet) -> str:
    """Render canonical text into the prompt set's template.

    The text is substituted verbatim. Quoting for transport is left to the
    HTTP layer, which JSON-encodes the whole request body.
    """

    return Template(prompt_set.template_text).substitute(text=text)


def _validate_template_text(template_text: str) -> None:
    identifiers = {
        match.group("named") or match.group("braced")
        for match in Template.pattern.finditer(template_text)
        if match.group("named") or match.group("braced")
    }
    if "text" not in identifiers:
        raise ValueError("Prompt template must contain a $text placeholder")
    unexpected = sorted(identifiers - {"text"})
    if unexpected:
        raise ValueError(f"Unexpected template placeholders: {', '.join(unexpected)}")


def _validate_schema_text(schema_text: str) -> dict[str, Any]:
    try:
        parsed = json.loads(schema_text)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid schema JSON: {error}") from error

    if not isinstance(parsed, dict):
        raise ValueError("Schema JSON root must be an object")

    return parsed


def _version_to_int(version: str) -> int:
    match = VERSION_RE.match(version)
    if match is None:
        raise ValueError(f"Invalid version format: {version}")
    return int(match.group(1))
