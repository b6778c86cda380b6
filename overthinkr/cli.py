from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from overthinkr.config.settings import Settings
from overthinkr.pipeline.orchestrator import (
    ToneAnalysisPipeline,
    build_default_pipeline,
)
from overthinkr.pipeline.session import AnalysisSession
from overthinkr.utils.logging import setup_logging

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BLOCKED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="overthinkr")
    parser.add_argument(
        "--env-file", type=str, default=".env", help="Path to .env file"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # analyze
    p_analyze = subparsers.add_parser("analyze")
    source = p_analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("--text")
    source.add_argument("--image")

    # validate-config
    subparsers.add_parser("validate-config")

    # ui
    subparsers.add_parser("ui")

    return parser


def run_analysis(
    *,
    pipeline: ToneAnalysisPipeline,
    text: str | None = None,
    image: str | None = None,
) -> tuple[int, dict[str, object]]:
    session = AnalysisSession()
    if image is not None:
        state = pipeline.submit_image(session, image)
    else:
        state = pipeline.submit_text(session, text)

    if state.phase == "success":
        return EXIT_OK, state.to_dict()
    if state.phase == "failure":
        return EXIT_FAILURE, state.to_dict()
    return EXIT_BLOCKED, state.to_dict()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if os.path.exists(args.env_file):
        load_dotenv(dotenv_path=args.env_file)

    try:
        settings = Settings()
    except ValidationError as e:
        print(f"Config validation error:\n{e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(settings.log_level, settings.log_file)

    if args.command == "validate-config":
        missing = [
            name
            for name, value in (
                ("gemini_api_key", settings.gemini_api_key),
                ("mistral_api_key", settings.mistral_api_key),
            )
            if not value
        ]
        if missing:
            print(f"Missing settings: {', '.join(missing)}", file=sys.stderr)
            return EXIT_FAILURE
        print("Config is valid.")
        return EXIT_OK

    if args.command == "ui":
        from overthinkr.ui.gradio_app import main as ui_main

        ui_main()
        return EXIT_OK

    pipeline = build_default_pipeline(settings)
    try:
        exit_code, payload = run_analysis(
            pipeline=pipeline, text=args.text, image=args.image
        )
    finally:
        pipeline.close()
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
