import json
import logging
import os
from typing import Optional

import vertexai
from google.auth import default
from vertexai.generative_models import GenerationConfig, GenerativeModel

from models import SlideDeck

# --- Configuration ---
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-pro")

GENERATION_CONFIG = GenerationConfig(temperature=0.7, max_output_tokens=2048, top_p=0.8, top_k=40)
COMPACT_GENERATION_CONFIG = GenerationConfig(temperature=0.7, max_output_tokens=1024)


class GenerationServiceError(Exception):
    """The generation service could not be reached or returned no text."""


def _existing_slides_json(prior_deck: Optional[SlideDeck]) -> str:
    slides = [slide.model_dump(by_alias=True) for slide in prior_deck.slides] if prior_deck else []
    return json.dumps(slides, ensure_ascii=False)


def build_prompt(user_prompt: str, prior_deck: Optional[SlideDeck] = None) -> str:
    if prior_deck is not None:
        request_block = (
            f"Existing slides: {_existing_slides_json(prior_deck)}. "
            f"Please modify based on user request: {user_prompt}"
        )
    else:
        request_block = f"User request: {user_prompt}"

    return f"""You are an AI assistant specialized in creating structured PowerPoint presentations.
    Analyze the user's request and generate a JSON response with the following structure:

    {{
      "thoughtProcess": "Brief explanation of how you structured the presentation",
      "slides": [
        {{
          "title": "Slide title",
          "content": ["Bullet point 1", "Bullet point 2", "Bullet point 3"],
          "imagePrompt": "Description for generating relevant image"
        }}
      ]
    }}

    Guidelines:
    - Create 3-6 slides based on the topic complexity
    - Each slide should have a clear title and 2-4 bullet points
    - Content should be concise and presentation-friendly
    - Include relevant image prompts where appropriate
    - For edits, modify existing structure while maintaining consistency
    - Ensure ALL JSON arrays are properly closed and strings are complete
    - Do not include markdown code blocks, just pure JSON

    {request_block}"""


def build_compact_prompt(user_prompt: str, prior_deck: Optional[SlideDeck] = None) -> str:
    modify_block = f"Modify existing: {_existing_slides_json(prior_deck)}" if prior_deck is not None else ""
    return f"""Create a PowerPoint presentation in valid JSON format only.
    Structure: {{"thoughtProcess": "...", "slides": [{{"title": "...", "content": ["...", "..."], "imagePrompt": "..."}}]}}
    User request: {user_prompt}
    {modify_block}
    Return pure JSON only, no other text."""


def _init_model() -> GenerativeModel:
    project_id = os.getenv("GOOGLE_CLOUD_PROJECT")
    location = os.getenv("GOOGLE_CLOUD_LOCATION")

    logging.info(f"Initializing Vertex AI for project '{project_id}' in '{location}'...")
    try:
        # Explicitly request the cloud-platform scope to call Vertex AI
        credentials, _ = default(
            scopes=['https://www.googleapis.com/auth/cloud-platform']
        )
        vertexai.init(project=project_id, location=location, credentials=credentials)
        return GenerativeModel(GEMINI_MODEL_NAME)
    except Exception as e:
        logging.error(f"Failed to initialize Vertex AI or model: {e}", exc_info=True)
        raise GenerationServiceError(f"Failed to initialize Vertex AI: {e}") from e


def request_deck_text(user_prompt: str, prior_deck: Optional[SlideDeck] = None, compact: bool = False) -> str:
    """
    Asks Gemini for a deck description and returns the raw response text.

    Args:
        user_prompt: The user's chat message.
        prior_deck: The current deck when the message is an edit request.
        compact: Use the short prompt and smaller output budget.

    Returns:
        The model's text, unparsed. Parsing belongs to the recovery pipeline.
    """
    model = _init_model()
    if compact:
        prompt, config = build_compact_prompt(user_prompt, prior_deck), COMPACT_GENERATION_CONFIG
    else:
        prompt, config = build_prompt(user_prompt, prior_deck), GENERATION_CONFIG

    logging.info(f"Generating PPT content for: {user_prompt[:200]}")
    try:
        response = model.generate_content(prompt, generation_config=config)
        llm_output_text = response.text
    except Exception as e:
        logging.error(f"LLM call failed: {e}", exc_info=True)
        raise GenerationServiceError(f"Gemini API error: {e}") from e

    if not llm_output_text:
        raise GenerationServiceError("Invalid response format from Gemini API")
    logging.debug(f"Received raw response from LLM: {llm_output_text}")
    return llm_output_text
