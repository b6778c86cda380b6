from __future__ import annotations

from overthinkr.pipeline.models import AnalysisResult, ReplyOption, SessionState

REPLY_ICONS: dict[str, str] = {
    "Confident": "🛡️",
    "Calm": "⚡",
    "Witty": "✨",
}
FALLBACK_REPLY_ICON = "💬"
HIGH_TENSION_THRESHOLD = 5


def reply_icon(reply_type: str) -> str:
    return REPLY_ICONS.get(reply_type, FALLBACK_REPLY_ICON)


def tension_label(score: int) -> str:
    level = "high" if score > HIGH_TENSION_THRESHOLD else "low"
    return f"{score}/10 ({level} tension)"


def render_replies(replies: tuple[ReplyOption, ...]) -> str:
    if not replies:
        return "No reply suggestions."

    lines: list[str] = []
    for reply in replies:
        lines.append(f'{reply_icon(reply.type)} **{reply.type}**: "{reply.msg}"')
    return "\n\n".join(lines)


def render_verdict(result: AnalysisResult) -> str:
    return f'"{result.explanation}"\n\nConfidence: {result.confidence}%'


def render_status(state: SessionState) -> str:
    if state.phase == "processing":
        return "Analyzing..."
    if state.phase == "failure" and state.error is not None:
        return state.error.message
    if state.phase == "success":
        return "Analysis complete."
    return ""
