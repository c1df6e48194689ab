import logging
import re

from stage_result import StageResult

STAGE = "normalize"

# Opening fences may carry a language tag (```json); closing ones never do.
CODE_FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_-]*")


def strip_code_fences(text: str) -> str:
    """Removes every fenced-code delimiter, wherever it appears."""
    return CODE_FENCE_PATTERN.sub("", text)


def _closes_top_level(text: str) -> bool:
    """True if the object opened by text[0] is closed, ignoring braces inside string literals."""
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return True
    return False


def normalize_response(raw_text: str) -> StageResult:
    """
    Locates the span of the model response that looks like the top-level
    deck object.

    The span starts at the first '{'. If that object is closed (braces inside
    string literals do not count), the span ends at the last '}', dropping any
    trailing prose. Otherwise the response was cut off mid-object and the span
    runs to the end of the text so the repairer can close it.
    """
    if not raw_text or not raw_text.strip():
        return StageResult.failure(STAGE, "empty response")

    cleaned = strip_code_fences(raw_text)
    first_brace = cleaned.find('{')
    if first_brace == -1:
        return StageResult.failure(STAGE, "No JSON object found in response")

    tail = cleaned[first_brace:]
    if _closes_top_level(tail):
        candidate = tail[: tail.rfind('}') + 1]
    else:
        candidate = tail.rstrip()
        logging.debug("Response looks truncated; keeping text through end of response.")

    return StageResult.success(STAGE, candidate)
