# centralized configuration loader
# runs load_dotenv() to read .env
# provider credentials, upstream hosts and quota limits all come from the environment

import os
from dotenv import load_dotenv

load_dotenv()


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Provider credentials (one per provider, never logged)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")

# Upstream hosts
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
GROQ_BASE_URL = os.getenv("GROQ_BASE_URL", "https://api.groq.com")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")

# Generation caps
OPENAI_MAX_OUTPUT_TOKENS = _int("OPENAI_MAX_OUTPUT_TOKENS", 1024)
ANTHROPIC_MAX_TOKENS = _int("ANTHROPIC_MAX_TOKENS", 2000)

# Transport timeouts; there is no deadline on the stream as a whole
UPSTREAM_CONNECT_TIMEOUT = _float("UPSTREAM_CONNECT_TIMEOUT", 10.0)
UPSTREAM_READ_TIMEOUT = _float("UPSTREAM_READ_TIMEOUT", 120.0)

# Usage ledger
MONTHLY_TOKEN_LIMIT = _int("MONTHLY_TOKEN_LIMIT", 500)
USAGE_WINDOW_DAYS = _int("USAGE_WINDOW_DAYS", 30)
USAGE_KEY_PREFIX = os.getenv("USAGE_KEY_PREFIX", "monthly_token_usage:")
USAGE_STORE_MAX_KEYS = _int("USAGE_STORE_MAX_KEYS", 100_000)

# Outbound stream
CHANNEL_BUFFER = _int("CHANNEL_BUFFER", 64)

# Server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = _int("PORT", 8000)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
