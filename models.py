from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

CONTENT_PLACEHOLDER = "Content not available"
DEFAULT_NARRATIVE = "Created presentation based on your request"


class Slide(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    content: List[str] = Field(min_length=1)
    image_prompt: str = Field(alias="imagePrompt")


class SlideDeck(BaseModel):
    narrative: str
    slides: List[Slide] = Field(min_length=1)


class EditRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instruction: str
    prior_deck: SlideDeck = Field(alias="priorDeck")


# --- API payloads ---
class DeckPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    prior_deck: Optional[SlideDeck] = Field(default=None, alias="priorDeck")
    compact: bool = False


class RecoverPayload(DeckPayload):
    raw_text: Optional[str] = Field(default=None, alias="rawText")
