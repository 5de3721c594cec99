from __future__ import annotations

from typing import List

from kidsposter.schemas import GenerationRequest

PROMPT_FRAMING = "Transform the input into a modern living-room poster while following these rules:"

PRESERVE_SHAPES = "Preserve ALL original shapes, proportions, and line strokes exactly."
PRESERVE_FIGURES = "Do NOT change faces, figures, or geometry. No new characters or objects."
RECOLOR = "Recolor using flat, paper-like blocks; clean negative space; wide margins."
ALLOW_SHAPES = (
    "You MAY add a few simple abstract shapes (cut-out style) in background or margins, "
    "subtle and secondary."
)
FORBID_SHAPES = "Do NOT add new shapes; only recolor and tidy."
FORBID_TEXT = "Do NOT add any text."


def build_guidance(request: GenerationRequest) -> List[str]:
    """Return the ordered prompt directives for *request*."""

    guidance = [
        PRESERVE_SHAPES,
        PRESERVE_FIGURES,
        RECOLOR,
        f"Use a {request.style} aesthetic with harmonious palette around accent {request.accent_color}.",
    ]
    guidance.append(ALLOW_SHAPES if request.allow_shapes else FORBID_SHAPES)

    title = request.title_text.strip()
    if request.ai_text and title:
        guidance.append(
            f'If adding text, use this title: "{title}" in a clean, minimal layout; keep it unobtrusive.'
        )
    else:
        guidance.append(FORBID_TEXT)
    return guidance


def build_prompt(request: GenerationRequest) -> str:
    lines = [f"{index}. {item}" for index, item in enumerate(build_guidance(request), start=1)]
    return "\n".join([PROMPT_FRAMING, *lines])


__all__ = ["PROMPT_FRAMING", "build_guidance", "build_prompt"]
