# Runtime settings, read once from the environment at import
import os

APP_VERSION = "1.0.0"

PORT = int(os.environ.get("PORT", "3000"))

# Ollama runtime (local by default)
OLLAMA_HOST = os.environ.get("OLLAMA_HOST", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("OLLAMA_MODEL", "qwen3:8b")
LLM_TEMPERATURE = float(os.environ.get("LLM_TEMPERATURE", "0.2"))

# Separate service that provides the game catalog search endpoint
CATALOG_SERVICE_URL = os.environ.get("CATALOG_SERVICE_URL", "http://localhost:3001")

HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "60"))

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

DEFAULT_LIMIT = int(os.environ.get("DEFAULT_LIMIT", "5"))  # results per tool call
MAX_RESULTS = int(os.environ.get("MAX_RESULTS", "24"))  # hard cap on a model-proposed limit
MIN_FETCH = int(os.environ.get("MIN_FETCH", "50"))  # over-fetch floor so price filtering has room

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
