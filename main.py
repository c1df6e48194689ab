import io
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse

# Local imports
import gemini_client
import ppt_generator
from deck_pipeline import DeckOutcome, run_pipeline
from models import DeckPayload, RecoverPayload, SlideDeck

# Google Cloud clients
from google.cloud import storage


# Logging configuration
import logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

# --- Configuration ---
BUCKET_NAME = os.getenv("GCS_BUCKET_NAME")

# --- FastAPI App ---
app = FastAPI(
    title="AI PowerPoint Generator",
    description="Turns chat requests into validated slide decks and exports them as PowerPoint files.",
    version="1.0.0"
)


def _deck_response(outcome: DeckOutcome, message: Optional[str] = None):
    deck = outcome.deck
    return {
        "status": "success",
        "message": message,
        "narrative": deck.narrative,
        "slides": [slide.model_dump(by_alias=True) for slide in deck.slides],
        "source": outcome.source,
        "failures": [{"stage": f.stage, "reason": f.reason} for f in outcome.failures],
    }


# --- Main Endpoints --- #
@app.post("/generate_deck/", summary="Generate or edit a slide deck from a chat message")
def generate_deck_endpoint(payload: DeckPayload):
    """Calls the generation service and always answers with a usable deck."""
    raw_text, transport_error = None, None
    try:
        raw_text = gemini_client.request_deck_text(payload.text, payload.prior_deck, compact=payload.compact)
    except gemini_client.GenerationServiceError as e:
        logging.error(f"Error generating PPT content with Gemini: {e}")
        transport_error = str(e)

    outcome = run_pipeline(raw_text, payload.text, payload.prior_deck, transport_error)
    message = f"Error: {transport_error}" if transport_error else None
    return _deck_response(outcome, message)


@app.post("/recover_deck/", summary="Recover a slide deck from model text the caller already has")
def recover_deck_endpoint(payload: RecoverPayload):
    outcome = run_pipeline(payload.raw_text, payload.text, payload.prior_deck)
    return _deck_response(outcome)


def upload_presentation(data: bytes, file_name: str) -> str:
    """Uploads a .pptx to the configured GCS bucket and returns its public URL."""
    storage_client = storage.Client()
    bucket = storage_client.bucket(BUCKET_NAME)
    blob = bucket.blob(file_name)

    logging.info(f"Uploading presentation to gs://{BUCKET_NAME}/{file_name}")
    blob.upload_from_string(data, content_type=ppt_generator.PPTX_CONTENT_TYPE)
    logging.info(f"File uploaded. Public URL: {blob.public_url}")
    return blob.public_url


@app.post("/export_pptx/", summary="Export a slide deck as a PowerPoint file")
def export_pptx_endpoint(deck: SlideDeck, upload: bool = False):
    try:
        data = ppt_generator.presentation_bytes(deck)
        file_name = ppt_generator.presentation_filename()

        if upload:
            if not BUCKET_NAME:
                raise HTTPException(status_code=400, detail="GCS_BUCKET_NAME is not configured.")
            return {
                "status": "success",
                "message": "Presentation uploaded to GCS successfully.",
                "file_url": upload_presentation(data, file_name),
            }

        return StreamingResponse(
            io.BytesIO(data),
            media_type=ppt_generator.PPTX_CONTENT_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
        )
    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"An error occurred while exporting the presentation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/")
async def root():
    return {"message": "AI PowerPoint Generator API is running."}
