"""Central Configuration for the CodeFlex Coach."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base Directory (Root of the project)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load Environment Variables
load_dotenv(BASE_DIR / ".env")

# LLM Settings
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash-001")
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.4"))
GENERATION_TOP_P = float(os.getenv("GENERATION_TOP_P", "0.9"))

# Plan generation: explicit timeout, no retries unless configured
PLAN_GENERATION_TIMEOUT_SECONDS = float(os.getenv("PLAN_GENERATION_TIMEOUT_SECONDS", "60"))
PLAN_GENERATION_MAX_RETRIES = int(os.getenv("PLAN_GENERATION_MAX_RETRIES", "0"))
PLAN_RETRY_BASE_DELAY_SECONDS = float(os.getenv("PLAN_RETRY_BASE_DELAY_SECONDS", "1.0"))

# Paths
PLAN_STORAGE_PATH = Path(os.getenv("PLAN_STORAGE_PATH", str(BASE_DIR / ".plans")))

# Voice Assistant
VAPI_ASSISTANT_ID = os.getenv("VAPI_ASSISTANT_ID")
END_CALL_GRACE_SECONDS = float(os.getenv("END_CALL_GRACE_SECONDS", "2.0"))
