#!/usr/bin/env python3
"""
Configuration management for the vendor chat backend.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Configuration class for the application."""

    # Gemini (Google) API Configuration for the general chat path
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    GEMINI_INCLUDE_THOUGHTS = _flag("GEMINI_INCLUDE_THOUGHTS", "true")
    GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", 0.4))

    # Moderation (OpenAI moderations endpoint)
    MODERATION_API_KEY = os.getenv("MODERATION_API_KEY") or os.getenv("OPENAI_API_KEY")
    MODERATION_MODEL = os.getenv("MODERATION_MODEL", "omni-moderation-latest")
    MODERATION_URL = os.getenv("MODERATION_URL", "https://api.openai.com/v1/moderations")
    # When the classifier itself fails: deny the turn (True) or proceed unflagged (False)
    MODERATION_FAIL_CLOSED = _flag("MODERATION_FAIL_CLOSED")

    # Embeddings + FAISS vendor index
    EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
    VENDOR_INDEX_PATH = os.getenv("VENDOR_INDEX_PATH", "data/processed/vendors.faiss")
    VENDOR_METADATA_PATH = os.getenv("VENDOR_METADATA_PATH", "data/processed/vendors.json")

    # Web search tool
    TAVILY_API_KEY = os.getenv("TAVILY_API_KEY")

    # Session store
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///vendor_chat.db")

    # Application Configuration
    VENDOR_TOP_K = 5
    MAX_TOOL_STEPS = 10
    MAX_EDITORIAL_REVIEWS = 50
    REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", 60))
    EMIT_VENDOR_PAYLOAD = _flag("EMIT_VENDOR_PAYLOAD")
    WALL_AUTOSCROLL = _flag("WALL_AUTOSCROLL", "true")

    @classmethod
    def validate(cls):
        """Validate that all required configuration is present."""
        required = {
            "GEMINI_API_KEY": cls.GEMINI_API_KEY,
            "MODERATION_API_KEY": cls.MODERATION_API_KEY,
            "EMBEDDING_MODEL": cls.EMBEDDING_MODEL,
            "VENDOR_INDEX_PATH": cls.VENDOR_INDEX_PATH,
            "VENDOR_METADATA_PATH": cls.VENDOR_METADATA_PATH,
        }
        missing = [name for name, value in required.items() if not value]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True
