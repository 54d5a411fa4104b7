"""
config.py - Configuration settings for HealthAI Pro+
=====================================================

This file centralizes all configuration values. Anything deployment-specific
(API keys, ports, timeouts) can be overridden with environment variables or a
.env file in the project root.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Base directory (where this file lives)
BASE_DIR = Path(__file__).parent

# Offline disease records loaded once at startup
DATA_DIR = BASE_DIR / "data"
KNOWLEDGE_BASE_PATH = Path(
    os.getenv("KNOWLEDGE_BASE_PATH", str(DATA_DIR / "diseases.json"))
)

# Front-end page served at "/"
STATIC_DIR = BASE_DIR / "static"
INDEX_HTML_PATH = STATIC_DIR / "index.html"

# =============================================================================
# SERVER CONFIGURATION
# =============================================================================

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

# Size of the worker thread pool that runs request handlers
WORKER_THREADS = int(os.getenv("WORKER_THREADS", "16"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# =============================================================================
# CACHE CONFIGURATION
# =============================================================================

# Cached answers are served for 6 hours, then re-resolved
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", str(6 * 60 * 60)))

# =============================================================================
# GEMINI CONFIGURATION
# =============================================================================

# Google Gemini API key - leave empty to run with the offline tiers only
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

# Seconds to wait for the TCP connection, then for the response body
GEMINI_CONNECT_TIMEOUT = float(os.getenv("GEMINI_CONNECT_TIMEOUT", "8"))
GEMINI_READ_TIMEOUT = float(os.getenv("GEMINI_READ_TIMEOUT", "16"))

# Keys starting with this prefix are treated as unfilled templates
API_KEY_PLACEHOLDER_PREFIX = "YOUR_"

# =============================================================================
# CONVERSATION CONFIGURATION
# =============================================================================

GREETING_PHRASES = [
    "hi", "hello", "hey",
    "good morning", "good afternoon", "good evening",
]

WELCOME_MESSAGE = (
    "👋 Hello — I’m HealthAI Pro+. Ask about diseases, symptoms, prevention, "
    "and general treatments. This assistant provides informational content only."
)

APOLOGY_MESSAGE = "Sorry, I couldn't fetch details at the moment. Try again later."

DISCLAIMER = "⚕️ Disclaimer: This information is for educational purposes only."
