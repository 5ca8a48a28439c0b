"""
Configuration management for the task extraction backend.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the project root or the backend directory
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

PROMPTS_DIR = BACKEND_DIR / "prompts"

# Ollama configuration
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_EXTRACTION_MODEL = os.getenv("OLLAMA_EXTRACTION_MODEL", "mixtral:latest")
# Set to false to run the heuristic path only
MODEL_EXTRACTION_ENABLED = os.getenv("MODEL_EXTRACTION_ENABLED", "true").lower() == "true"

# LLM settings (can be overridden via env vars)
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "4096"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))

# Chunking
MAX_CHUNK_SIZE = int(os.getenv("MAX_CHUNK_SIZE", "50000"))  # characters
CHUNK_MIN_SPLIT_SIZE = int(os.getenv("CHUNK_MIN_SPLIT_SIZE", "1000"))
CHUNK_HARD_LIMIT_FACTOR = float(os.getenv("CHUNK_HARD_LIMIT_FACTOR", "1.2"))
SUMMARY_MAX_CHARS = int(os.getenv("SUMMARY_MAX_CHARS", "10000"))  # syllabus share of model context

# Extraction defaults
DEFAULT_DUE_DAYS = int(os.getenv("DEFAULT_DUE_DAYS", "14"))
DEFAULT_DUE_HOUR = 23
DEFAULT_DUE_MINUTE = 59
RECURRENCE_HORIZON = int(os.getenv("RECURRENCE_HORIZON", "12"))  # periods
DEFAULT_COURSE_ID = os.getenv("DEFAULT_COURSE_ID", "default")

# Context limits
MAX_ANNOUNCEMENTS = int(os.getenv("MAX_ANNOUNCEMENTS", "10"))
MAX_DISCUSSIONS = int(os.getenv("MAX_DISCUSSIONS", "10"))

# Processing optimization
MAX_CONCURRENT_CHUNKS = int(os.getenv("MAX_CONCURRENT_CHUNKS", "4"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# API configuration
API_V1_PREFIX = "/api/v1"
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]
