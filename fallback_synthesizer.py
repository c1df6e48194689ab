import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from models import CONTENT_PLACEHOLDER, Slide, SlideDeck

DEFAULT_TOPIC = "your topic"
TOPIC_WORD_COUNT = 3
SHORT_BULLET_WORDS = 4


class TemplateRule(NamedTuple):
    keywords: Sequence[str]
    build: Callable[[str], List[Slide]]


class EditRule(NamedTuple):
    keywords: Sequence[str]
    transform: Callable[[str], str]


def _mentions(text: str, keywords: Sequence[str]) -> bool:
    """Empty keyword list is the catch-all."""
    return not keywords or any(keyword in text for keyword in keywords)


def _slide(title, content, image_prompt):
    return Slide(title=title, content=list(content), image_prompt=image_prompt)


# --- New-deck templates ---

def node_js_slides(topic: str) -> List[Slide]:
    return [
        _slide("What is Node.js?", [
            "JavaScript runtime built on Chrome's V8 engine",
            "Enables server-side JavaScript execution",
            "Event-driven, non-blocking I/O model",
            "Perfect for scalable network applications",
        ], "Node.js architecture diagram showing event loop"),
        _slide("Key Features & Benefits", [
            "Fast execution with V8 JavaScript engine",
            "Single programming language for full-stack",
            "Large ecosystem with npm packages",
            "Excellent for real-time applications",
        ], "Features visualization for Node.js"),
        _slide("Common Use Cases", [
            "RESTful APIs and microservices",
            "Real-time applications (chat, gaming)",
            "Data streaming applications",
            "Server-side web applications",
        ], "Use cases diagram for Node.js applications"),
        _slide("Getting Started", [
            "Install Node.js from official website",
            "Create your first server with http module",
            "Use npm to manage dependencies",
            "Explore popular frameworks like Express",
        ], "Step-by-step Node.js setup guide"),
    ]


def generic_slides(topic: str) -> List[Slide]:
    return [
        _slide(f"Introduction to {topic}", [
            f"Overview and significance of {topic}",
            "Key concepts and fundamental principles",
            "Current relevance and applications",
        ], f"Conceptual introduction to {topic}"),
        _slide("Core Features", [
            "Main components and characteristics",
            "Key advantages and benefits",
            "How it works in practice",
        ], f"Feature overview for {topic}"),
        _slide("Practical Applications", [
            "Real-world use cases",
            "Industry applications",
            "Implementation examples",
        ], f"Applications visualization for {topic}"),
        _slide("Getting Started", [
            "Basic setup and requirements",
            "First steps and learning path",
            "Resources for further learning",
        ], f"Getting started guide for {topic}"),
    ]


# Evaluated top to bottom; the last rule always matches.
TEMPLATE_RULES = [
    TemplateRule(("node", "javascript", "js"), node_js_slides),
    TemplateRule((), generic_slides),
]


# --- Edit transforms ---

def expand_bullet(bullet: str) -> str:
    return f"{bullet} (expanded)"


def shorten_bullet(bullet: str) -> str:
    return " ".join(bullet.split()[:SHORT_BULLET_WORDS]) or CONTENT_PLACEHOLDER


def mark_updated(bullet: str) -> str:
    return f"{bullet} (updated)"


EDIT_RULES = [
    EditRule(("expand", "more"), expand_bullet),
    EditRule(("simplify", "shorter"), shorten_bullet),
    EditRule((), mark_updated),
]


def topic_label(request_text: str) -> str:
    words = (request_text or "").split()
    return " ".join(words[:TOPIC_WORD_COUNT]) or DEFAULT_TOPIC


def _with_note(message: str, reason: Optional[str]) -> str:
    return f"{message} Note: {reason}" if reason else message


def synthesize_new_deck(request_text: str, reason: Optional[str] = None) -> SlideDeck:
    lowered = (request_text or "").lower()
    rule = next(rule for rule in TEMPLATE_RULES if _mentions(lowered, rule.keywords))
    slides = rule.build(topic_label(request_text))
    logging.info(f"Synthesized {len(slides)} slides with template '{rule.build.__name__}'")
    return SlideDeck(
        narrative=_with_note(f'Created {len(slides)}-slide presentation about "{request_text}".', reason),
        slides=slides,
    )


def synthesize_edit(instruction: str, prior_deck: SlideDeck, reason: Optional[str] = None) -> SlideDeck:
    """Derives a new deck from the prior one; `prior_deck` itself is left untouched."""
    lowered = (instruction or "").lower()
    rule = next(rule for rule in EDIT_RULES if _mentions(lowered, rule.keywords))
    slides = [
        _slide(slide.title, [rule.transform(bullet) for bullet in slide.content], slide.image_prompt)
        for slide in prior_deck.slides
    ]
    logging.info(f"Applied edit transform '{rule.transform.__name__}' to {len(slides)} slides")
    return SlideDeck(
        narrative=_with_note(f'Modified existing presentation based on: "{instruction}".', reason),
        slides=slides,
    )


def synthesize_deck(request_text: str, prior_deck: Optional[SlideDeck] = None,
                    reason: Optional[str] = None) -> SlideDeck:
    """
    Last-resort deck that never depends on model output. Edit mode when a
    prior deck with slides is supplied, new-deck mode otherwise.
    """
    if prior_deck is not None and prior_deck.slides:
        return synthesize_edit(request_text, prior_deck, reason)
    return synthesize_new_deck(request_text, reason)
