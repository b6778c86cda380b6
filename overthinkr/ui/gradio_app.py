from __future__ import annotations

from pathlib import Path
from typing import Any

import gradio as gr

from overthinkr.config.settings import get_settings
from overthinkr.pipeline.models import SessionState
from overthinkr.pipeline.orchestrator import (
    ToneAnalysisPipeline,
    build_default_pipeline,
)
from overthinkr.pipeline.session import AnalysisSession
from overthinkr.ui.result_helpers import (
    render_replies,
    render_status,
    render_verdict,
    tension_label,
)
from overthinkr.utils.logging import setup_logging


def analyze_text(
    *,
    pipeline: ToneAnalysisPipeline,
    session: AnalysisSession | None,
    text: str | None,
) -> tuple[Any, ...]:
    active_session = session or AnalysisSession()
    state = pipeline.submit_text(active_session, text)
    return (active_session, *_ui_payload(state, fallback_text=text or ""))


def analyze_image(
    *,
    pipeline: ToneAnalysisPipeline,
    session: AnalysisSession | None,
    image_path: str | Path | None,
    current_text: str | None,
) -> tuple[Any, ...]:
    active_session = session or AnalysisSession()
    state = pipeline.submit_image(active_session, image_path)
    return (active_session, *_ui_payload(state, fallback_text=current_text or ""))


def analyze_button_update(text: str | None) -> dict[str, Any]:
    return gr.update(interactive=bool((text or "").strip()))


def _ui_payload(state: SessionState, *, fallback_text: str) -> tuple[str, ...]:
    input_text = state.input_text if state.input_text is not None else fallback_text
    if state.phase != "success" or state.result is None:
        return (render_status(state), "", "", "", "", input_text)

    result = state.result
    return (
        render_status(state),
        result.tone,
        tension_label(result.score),
        render_verdict(result),
        render_replies(result.replies),
        input_text,
    )


def build_app(pipeline: ToneAnalysisPipeline | None = None) -> gr.Blocks:
    settings = get_settings()
    tone_pipeline = pipeline or build_default_pipeline(settings)

    with gr.Blocks(title="Overthinkr") as app:
        gr.Markdown("# Overthinkr.")
        gr.Markdown('Decode the subtext. *"Is that period aggressive or just grammar?"*')

        session_state = gr.State(value=None)

        with gr.Row():
            text_box = gr.Textbox(
                label="Message",
                placeholder="Paste that text here...",
                lines=5,
            )
        with gr.Row():
            screenshot = gr.Image(label="Screenshot", type="filepath")
        with gr.Row():
            analyze_button = gr.Button("Analyze", variant="primary", interactive=False)

        status_box = gr.Textbox(label="Status", interactive=False)
        with gr.Row():
            tone_box = gr.Textbox(label="Tone", interactive=False)
            tension_box = gr.Textbox(label="Tension", interactive=False)
        verdict_box = gr.Markdown(label="The Verdict")
        replies_box = gr.Markdown(label="Smart Replies")

        outputs = [
            session_state,
            status_box,
            tone_box,
            tension_box,
            verdict_box,
            replies_box,
            text_box,
        ]

        text_box.change(
            analyze_button_update,
            inputs=[text_box],
            outputs=[analyze_button],
        )
        analyze_button.click(
            lambda session, text: analyze_text(
                pipeline=tone_pipeline, session=session, text=text
            ),
            inputs=[session_state, text_box],
            outputs=outputs,
        )
        screenshot.upload(
            lambda session, image_path, text: analyze_image(
                pipeline=tone_pipeline,
                session=session,
                image_path=image_path,
                current_text=text,
            ),
            inputs=[session_state, screenshot, text_box],
            outputs=outputs,
        )

    return app


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    app = build_app()
    app.launch(
        server_name=settings.gradio_server_name,
        server_port=settings.gradio_server_port,
    )


if __name__ == "__main__":
    main()
