"""
Recovery pipeline: turns whatever the generation service returned into a
valid SlideDeck.

    normalize -> repair -> strict parse ------+-> validate -> deck
                                  \\-> regex extract -/
    (any failure along the way) ------------------> synthesize -> deck

Each stage returns a StageResult; failures fall through to the next stage
and are kept on the outcome for diagnostics. The pipeline itself never raises.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from deck_extractor import extract_records, parse_strict
from deck_validator import validate_deck
from fallback_synthesizer import synthesize_deck
from models import EditRequest, SlideDeck
from response_normalizer import normalize_response
from stage_result import StageFailure, StageResult, first_success
from syntax_repair import repair_syntax

SOURCE_STRICT = "strict"
SOURCE_REGEX = "regex"
SOURCE_SYNTHESIZED = "synthesized"
TRANSPORT_STAGE = "transport"


@dataclass
class DeckOutcome:
    deck: SlideDeck
    source: str
    failures: List[StageFailure] = field(default_factory=list)

    @property
    def recovered(self) -> bool:
        return self.source != SOURCE_SYNTHESIZED


def _relabel(source):
    """Re-tags a successful value with the path that produced it."""
    def step(value):
        return StageResult.success(source, value)
    return step


def _strict_path(candidate: str) -> StageResult:
    return parse_strict(repair_syntax(candidate)).then(_relabel(SOURCE_STRICT))


def _structure(raw_text: str, candidate: str) -> StageResult:
    # Extraction reads the raw text; repair may have mangled the candidate.
    return first_success([
        lambda: _strict_path(candidate),
        lambda: extract_records(raw_text).then(_relabel(SOURCE_REGEX)),
    ])


def recover_deck(raw_text: str) -> StageResult:
    """Every stage that reads model text. On success, `stage` names the path taken."""
    structured = normalize_response(raw_text).then(lambda candidate: _structure(raw_text, candidate))
    if not structured.ok:
        return structured
    return structured.then(validate_deck).then(_relabel(structured.stage))


def run_pipeline(raw_text: Optional[str], request_text: str,
                 prior_deck: Optional[SlideDeck] = None,
                 transport_error: Optional[str] = None) -> DeckOutcome:
    """
    Produces a deck for one chat turn.

    Args:
        raw_text: The generation service's response, or None when the call failed.
        request_text: The user's message (new-deck request or edit instruction).
        prior_deck: The current deck when the message is an edit.
        transport_error: Why the generation call failed, if it did.

    Returns:
        A DeckOutcome whose deck always has at least one slide.
    """
    if raw_text is None or transport_error:
        result = StageResult.failure(TRANSPORT_STAGE, transport_error or "no response from generation service")
    else:
        result = recover_deck(raw_text)

    if result.ok:
        logging.info(f"Recovered deck with {len(result.value.slides)} slides via {result.stage} path")
        return DeckOutcome(deck=result.value, source=result.stage, failures=result.failures)

    for failure in result.failures:
        logging.warning(f"Deck recovery stage failed - {failure}")
    logging.warning(f"Using fallback content due to: {result.reason}")
    deck = synthesize_deck(request_text, prior_deck, result.reason)
    return DeckOutcome(deck=deck, source=SOURCE_SYNTHESIZED, failures=result.failures)


def generate_deck(raw_text: Optional[str], request_text: str) -> SlideDeck:
    return run_pipeline(raw_text, request_text).deck


def edit_deck(raw_text: Optional[str], edit_request: EditRequest) -> SlideDeck:
    return run_pipeline(raw_text, edit_request.instruction, edit_request.prior_deck).deck
