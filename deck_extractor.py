import json
import logging
import re

from models import DEFAULT_NARRATIVE
from stage_result import StageResult

STRICT_STAGE = "strict-parse"
REGEX_STAGE = "regex-extract"

# A double-quoted JSON string body, escapes included.
_QUOTED = r'"((?:[^"\\]|\\.)*)"'

NARRATIVE_PATTERNS = [
    re.compile(r'"(?:thoughtProcess|narrative)"\s*:\s*' + _QUOTED),
    re.compile(r'thoughtProcess[^"]*' + _QUOTED, re.IGNORECASE),
]
TITLE_PATTERN = re.compile(r'"title"\s*:\s*' + _QUOTED)
# Quoted items only, so brackets inside an item do not end the array. The closing
# bracket is optional so a content array cut off by truncation still counts.
CONTENT_PATTERN = re.compile(r'"content"\s*:\s*\[((?:\s*' + _QUOTED + r'\s*,?)*)')
IMAGE_PROMPT_PATTERN = re.compile(r'"imagePrompt"\s*:\s*' + _QUOTED)
ITEM_PATTERN = re.compile(_QUOTED)


def parse_strict(candidate: str) -> StageResult:
    """Parses the repaired candidate and checks it has the deck's top-level shape."""
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError) as e:
        return StageResult.failure(STRICT_STAGE, f"JSON parsing error: {e}")

    if not isinstance(data, dict):
        return StageResult.failure(STRICT_STAGE, "top-level value is not an object")
    if not isinstance(data.get("slides"), list):
        return StageResult.failure(STRICT_STAGE, "Invalid slide structure in response")
    return StageResult.success(STRICT_STAGE, data)


def _unescape(body: str) -> str:
    try:
        return json.loads(f'"{body}"')
    except json.JSONDecodeError:
        return body.replace('\\"', '"')


def _extract_narrative(raw_text: str):
    for pattern in NARRATIVE_PATTERNS:
        match = pattern.search(raw_text)
        if match:
            return _unescape(match.group(1)).strip()
    return None


def extract_records(raw_text: str) -> StageResult:
    """
    Rebuilds a deck from the raw model text without needing well-formed JSON.

    Each "title" field starts a record that runs until the next "title"; the
    record counts only if a "content" array shows up inside it with at least
    one non-empty quoted item.
    """
    raw_text = raw_text or ""
    logging.info("Attempting to rebuild slides from response text")

    titles = list(TITLE_PATTERN.finditer(raw_text))
    slides = []
    for i, title_match in enumerate(titles):
        end = titles[i + 1].start() if i + 1 < len(titles) else len(raw_text)
        record = raw_text[title_match.end():end]

        content_match = CONTENT_PATTERN.search(record)
        if not content_match:
            continue
        content = [_unescape(item).strip() for item in ITEM_PATTERN.findall(content_match.group(1))]
        content = [item for item in content if item]
        if not content:
            continue

        slide = {"title": _unescape(title_match.group(1)).strip(), "content": content}
        prompt_match = IMAGE_PROMPT_PATTERN.search(record)
        if prompt_match:
            slide["imagePrompt"] = _unescape(prompt_match.group(1)).strip()
        slides.append(slide)

    if not slides:
        return StageResult.failure(REGEX_STAGE, "Could not extract slides from response")

    logging.info(f"Rebuilt {len(slides)} slide(s) from {len(titles)} title match(es)")
    return StageResult.success(REGEX_STAGE, {
        "narrative": _extract_narrative(raw_text) or DEFAULT_NARRATIVE,
        "slides": slides,
    })
