"""
Identity document OCR through an OpenAI vision model.

The model is asked for structured output (one entry per document visible in
the image) with a self-reported confidence. Anything under
OCR_REVIEW_THRESHOLD is flagged so the operator checks it before check-in.
"""
import base64
import logging
from typing import Type

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from housing.core.config import settings
from housing.core.exceptions import ExternalServiceError, ServiceUnavailableError
from housing.schemas.ocr import EgyptianIdScanBatch, OcrScanResult, RussianPassportScanBatch

logger = logging.getLogger(__name__)

EGYPTIAN_ID_PROMPT = (
    "The image shows one or more Egyptian national ID cards. For each card return the holder's "
    "full Arabic name and the 14-digit national ID number. Give a confidence from 0 to 100 for each card. "
    "If no card is readable return an empty list."
)

RUSSIAN_PASSPORT_PROMPT = (
    "The image shows one or more Russian passports. For each passport return the holder's full name "
    "in Latin letters, the passport number, nationality and gender. Give a confidence from 0 to 100 for "
    "each passport. If no passport is readable return an empty list."
)

SYSTEM_PROMPT = "You extract identity document fields for a housing office. Never invent values you cannot read."


def _vision_llm() -> ChatOpenAI:
    if not settings.OPENAI_API_KEY:
        raise ServiceUnavailableError("OpenAI API key is not configured. Set OPENAI_API_KEY in .env.")
    return ChatOpenAI(
        model=settings.OPENAI_VISION_MODEL,
        api_key=settings.OPENAI_API_KEY,
        max_tokens=1024,
    )


def _scan(image: bytes, mime: str, prompt: str, schema: Type[BaseModel]) -> OcrScanResult:
    data_url = f"data:{mime};base64,{base64.b64encode(image).decode('ascii')}"
    llm = _vision_llm().with_structured_output(schema)
    message = HumanMessage(
        content=[
            {"type": "image_url", "image_url": {"url": data_url}},
            {"type": "text", "text": prompt},
        ]
    )
    try:
        batch = llm.invoke([SystemMessage(content=SYSTEM_PROMPT), message])
    except Exception as e:
        logger.exception("Vision OCR request failed")
        raise ExternalServiceError(f"OCR failed: {e}")

    results = list(batch.results)
    needs_review = any(r.confidence < settings.OCR_REVIEW_THRESHOLD for r in results)
    logger.info("OCR read %s documents (needs_review=%s)", len(results), needs_review)
    return OcrScanResult(results=results, needs_review=needs_review)


def scan_egyptian_id(image: bytes, mime: str) -> OcrScanResult:
    return _scan(image, mime, EGYPTIAN_ID_PROMPT, EgyptianIdScanBatch)


def scan_russian_passport(image: bytes, mime: str) -> OcrScanResult:
    return _scan(image, mime, RUSSIAN_PASSPORT_PROMPT, RussianPassportScanBatch)
