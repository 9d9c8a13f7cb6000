"""
Configuration management for the VidChat backend.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the backend directory or project root
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file if it exists
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Also try loading from backend directory
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

# Base paths
BASE_DIR = PROJECT_ROOT
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
DB_PATH = Path(os.getenv("DB_PATH", str(DATA_DIR / "vidchat.db")))
SCHEMA_FILE = BACKEND_DIR / "db" / "schema.sql"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)

# OpenRouter (OpenAI-compatible) configuration
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", None)
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_SITE_URL = os.getenv("OPENROUTER_SITE_URL", "http://localhost:3000")
OPENROUTER_APP_NAME = os.getenv("OPENROUTER_APP_NAME", "VidChat")

CHAT_MODEL = os.getenv("CHAT_MODEL", "deepseek/deepseek-r1-0528-qwen3-8b:free")
SUMMARY_MODEL = os.getenv("SUMMARY_MODEL", CHAT_MODEL)
WEB_AUGMENT_MODEL = os.getenv("WEB_AUGMENT_MODEL", "openai/gpt-4o-mini")

# LLM settings (can be overridden via env vars)
# Temperature stays above zero so near-identical questions are not decoded deterministically
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "2048"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

# Web augmentation
WEB_AUGMENT_PROVIDER = os.getenv("WEB_AUGMENT_PROVIDER", "llm").lower()  # 'llm' | 'duckduckgo'
WEB_AUGMENT_MIN_LENGTH = int(os.getenv("WEB_AUGMENT_MIN_LENGTH", "50"))
WEB_AUGMENT_MAX_TOKENS = int(os.getenv("WEB_AUGMENT_MAX_TOKENS", "800"))
WEB_SEARCH_TIMEOUT_SECONDS = float(os.getenv("WEB_SEARCH_TIMEOUT_SECONDS", "10"))

# YouTube
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", None)
TRANSCRIPT_LANGUAGES = [
    lang.strip() for lang in os.getenv("TRANSCRIPT_LANGUAGES", "en").split(",") if lang.strip()
]

# Storage
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sqlite").lower()  # 'sqlite' | 'memory'

# Auth (X-User-Id is set by the upstream session layer)
ADMIN_USER_IDS = [
    user_id.strip() for user_id in os.getenv("ADMIN_USER_IDS", "").split(",") if user_id.strip()
]

# Chat
CHAT_CONTEXT_MESSAGES = int(os.getenv("CHAT_CONTEXT_MESSAGES", "10"))

# Video analysis rate limit, per user (or client address when anonymous)
ANALYSIS_RATE_LIMIT = int(os.getenv("ANALYSIS_RATE_LIMIT", "5"))
ANALYSIS_RATE_WINDOW_MINUTES = int(os.getenv("ANALYSIS_RATE_WINDOW_MINUTES", "15"))

# API configuration
API_PREFIX = "/api"
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
