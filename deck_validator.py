import logging
from typing import Any, Dict, List

from models import CONTENT_PLACEHOLDER, DEFAULT_NARRATIVE, Slide, SlideDeck
from stage_result import StageResult

STAGE = "validate"


def _clean_content(content: Any) -> List[str]:
    if isinstance(content, str):
        content = [content]
    if not isinstance(content, list):
        return [CONTENT_PLACEHOLDER]
    items = [str(item).strip() for item in content if item is not None]
    items = [item for item in items if item]
    return items or [CONTENT_PLACEHOLDER]


def normalize_slide(raw: Dict[str, Any], position: int) -> Slide:
    """Applies the defaulting rules to one slide; `position` is 1-based."""
    title = raw.get("title")
    title = str(title).strip() if title is not None else ""
    if not title:
        title = f"Slide {position}"

    image_prompt = raw.get("imagePrompt")
    image_prompt = str(image_prompt).strip() if image_prompt is not None else ""
    if not image_prompt:
        image_prompt = f"Image for {title}"

    return Slide(title=title, content=_clean_content(raw.get("content")), image_prompt=image_prompt)


def validate_deck(data: Dict[str, Any]) -> StageResult:
    """
    Turns a parsed or extracted `{narrative?, slides}` object into a canonical
    SlideDeck. Every entry keeps its input position; entries that are not
    objects become placeholder slides. Fails only when `slides` is empty.
    """
    raw_slides = data.get("slides") if isinstance(data, dict) else None
    if not isinstance(raw_slides, list):
        return StageResult.failure(STAGE, "Invalid slide structure in response")

    slides = []
    for position, raw in enumerate(raw_slides, 1):
        if not isinstance(raw, dict):
            logging.warning(f"Slide {position} is not an object, using defaults: {raw!r:.80}")
            raw = {}
        slides.append(normalize_slide(raw, position))

    if not slides:
        return StageResult.failure(STAGE, "No valid slides generated")

    narrative = data.get("narrative") or data.get("thoughtProcess")
    narrative = str(narrative).strip() if narrative else ""
    return StageResult.success(STAGE, SlideDeck(narrative=narrative or DEFAULT_NARRATIVE, slides=slides))
