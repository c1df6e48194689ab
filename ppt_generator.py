import io
import logging
import re
from datetime import datetime

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt

from models import SlideDeck


# --- 1. Design Constants ---
# Colors
TEXT_COLOR = RGBColor(32, 33, 36)
MUTED_GRAY = RGBColor(127, 140, 141)
# Slide Dimensions (16:9)
SLIDE_WIDTH = Inches(13.333)
SLIDE_HEIGHT = Inches(7.5)
# Margins
MARGIN_LEFT = Inches(0.5)
MARGIN_RIGHT = Inches(0.5)
MARGIN_TOP = Inches(0.5)
MARGIN_BOTTOM = Inches(0.6)
# Fonts
FONT_HEADLINE = 'Arial'
FONT_BODY = 'Arial'
SLIDE_TITLE_FONT_SIZE = Pt(32)
BODY_FONT_SIZE = Pt(20)
SLIDE_NUMBER_FONT_SIZE = Pt(12)

PRESENTATION_TITLE = 'AI Generated Presentation'
PRESENTATION_AUTHOR = 'AI PPT Generator'
PPTX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.presentationml.presentation'

# python-pptx has trouble with very long runs
MAX_TEXT_LENGTH = 1000

BLANK_LAYOUT_INDEX = 6


# --- 2. Helper Functions ---

def _truncate(text):
    if len(text) > MAX_TEXT_LENGTH:
        return text[:MAX_TEXT_LENGTH] + "..."
    return text


def apply_formatted_text_to_paragraph(p, text):
    """
    Adds text to a paragraph as runs, rendering **bold** spans in bold.
    """
    if not text:
        return
    for part in re.split(r'(\*\*.*?\*\*)', _truncate(text)):
        if not part:
            continue
        run = p.add_run()
        if part.startswith('**') and part.endswith('**') and len(part) > 4:
            run.text = part[2:-2]
            run.font.bold = True
        else:
            run.text = part
        run.font.name = FONT_BODY


# --- 3. Slide Drawing ---

def draw_deck_slide(slide, deck_slide, number, total):
    """Draws one deck slide: heading, one bullet line per content entry, slide number."""
    # Title
    title_shape = slide.shapes.add_textbox(
        MARGIN_LEFT, MARGIN_TOP, SLIDE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT, Inches(1)
    )
    title_tf = title_shape.text_frame
    title_tf.word_wrap = True
    p = title_tf.paragraphs[0]
    p.alignment = PP_ALIGN.CENTER
    p.font.size = SLIDE_TITLE_FONT_SIZE
    p.font.name = FONT_HEADLINE
    p.font.color.rgb = TEXT_COLOR
    p.font.bold = True
    apply_formatted_text_to_paragraph(p, deck_slide.title)

    # Bullets
    body_top = MARGIN_TOP + Inches(1.2)
    body_shape = slide.shapes.add_textbox(
        Inches(1), body_top, SLIDE_WIDTH - Inches(2), SLIDE_HEIGHT - body_top - MARGIN_BOTTOM
    )
    body_tf = body_shape.text_frame
    body_tf.word_wrap = True
    for i, bullet in enumerate(deck_slide.content):
        p = body_tf.paragraphs[0] if i == 0 else body_tf.add_paragraph()
        p.font.size = BODY_FONT_SIZE
        p.font.color.rgb = TEXT_COLOR
        p.space_after = Pt(12)
        apply_formatted_text_to_paragraph(p, f"• {bullet}")

    # Slide number
    number_shape = slide.shapes.add_textbox(
        SLIDE_WIDTH - MARGIN_RIGHT - Inches(1), SLIDE_HEIGHT - MARGIN_BOTTOM, Inches(1), Inches(0.4)
    )
    p = number_shape.text_frame.paragraphs[0]
    p.alignment = PP_ALIGN.RIGHT
    p.font.size = SLIDE_NUMBER_FONT_SIZE
    p.font.color.rgb = MUTED_GRAY
    p.text = f"{number} / {total}"

    logging.debug(f"  - Drawing Slide {number}: {deck_slide.title}")


# --- 4. Main Execution Logic ---

def create_presentation(deck: SlideDeck):
    """Creates a new presentation from a validated deck."""
    prs = Presentation()
    prs.slide_width = SLIDE_WIDTH
    prs.slide_height = SLIDE_HEIGHT
    prs.core_properties.title = PRESENTATION_TITLE
    prs.core_properties.author = PRESENTATION_AUTHOR

    logging.info(f"Starting presentation generation with {len(deck.slides)} slides...")
    total = len(deck.slides)
    for i, deck_slide in enumerate(deck.slides):
        slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT_INDEX])
        draw_deck_slide(slide, deck_slide, i + 1, total)

    return prs


def presentation_bytes(deck: SlideDeck) -> bytes:
    buffer = io.BytesIO()
    create_presentation(deck).save(buffer)
    return buffer.getvalue()


def presentation_filename(now=None) -> str:
    now = now or datetime.now()
    return f"presentation-{int(now.timestamp() * 1000)}.pptx"
