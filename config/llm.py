"""LLM Configuration for the CodeFlex Coach.

This module handles Gemini model initialization for plan generation.
"""
import logging
import google.generativeai as genai
from config.settings import (
    GEMINI_API_KEY,
    GEMINI_MODEL_NAME,
    GENERATION_TEMPERATURE,
    GENERATION_TOP_P,
)

logger = logging.getLogger(__name__)

def get_gemini_model(model_name: str = GEMINI_MODEL_NAME):
    """
    Configures and returns a Gemini model instance tuned for JSON plans.

    Args:
        model_name: Gemini model to use (default: gemini-2.0-flash-001)

    Returns:
        GenerativeModel instance or None if API key is missing.
    """
    if not GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set. Plan generation is unavailable.")
        return None

    genai.configure(api_key=GEMINI_API_KEY)

    # Low temperature keeps the plan close to the requested schema
    generation_config = {
        "temperature": GENERATION_TEMPERATURE,
        "top_p": GENERATION_TOP_P,
        "response_mime_type": "application/json",
    }

    safety_settings = [
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    ]

    model = genai.GenerativeModel(
        model_name=model_name,
        generation_config=generation_config,
        safety_settings=safety_settings,
    )
    return model
