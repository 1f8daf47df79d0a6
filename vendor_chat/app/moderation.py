#!/usr/bin/env python3
"""
Moderation module for the vendor chat backend.

This module classifies a user utterance with the OpenAI moderations endpoint
and supplies the denial message shown when it is flagged.
"""

from typing import Any, Dict, Optional

import requests

from .config import Config
from ..schemas.io_models import ModerationResult
from ..utils.errors import ModerationError
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger()

DEFAULT_DENIAL = "Your message violates our guidelines. I can't answer that."

# Checked in order; the first flagged category picks the message
DENIAL_MESSAGES = [
    ("sexual/minors", "I can't help with that. Content involving minors in a sexual context is not allowed."),
    ("self-harm", "I'm not able to help with that. If you are going through a hard time, please reach out to someone you trust or a local helpline."),
    ("violence", "I can't help with requests involving violence. I'm happy to help you plan your event instead."),
    ("harassment", "Let's keep things respectful. I can't respond to harassing messages."),
    ("hate", "I can't respond to hateful content. I'm here to help you find vendors for your celebration."),
    ("illicit", "I can't help with illegal activities."),
    ("sexual", "I can't help with sexual content. Ask me about venues, caterers or photographers instead."),
]


class ModerationGate:
    """Client for the content moderation classifier."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 url: Optional[str] = None, http: Optional[requests.Session] = None):
        """Initialize the moderation gate."""
        self.api_key = api_key or Config.MODERATION_API_KEY
        self.model = model or Config.MODERATION_MODEL
        self.url = url or Config.MODERATION_URL
        self.http = http or requests.Session()

    def classify(self, text: str) -> ModerationResult:
        """
        Classify a single utterance.

        Args:
            text: The user's latest utterance

        Returns:
            ModerationResult with the flag and, when flagged, a denial message

        Raises:
            ModerationError: the classifier is unavailable or answered malformed data
        """
        if not self.api_key:
            raise ModerationError("Moderation API key is required")

        try:
            response = self.http.post(
                self.url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"model": self.model, "input": text},
                timeout=Config.REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()
            result = data["results"][0]
        except requests.exceptions.RequestException as e:
            raise ModerationError(f"Moderation request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ModerationError(f"Malformed moderation response: {e}") from e

        if not isinstance(result, dict):
            raise ModerationError(f"Malformed moderation result: {type(result).__name__}")

        flagged = bool(result.get("flagged"))
        if not flagged:
            return ModerationResult(flagged=False)

        categories = result.get("categories") or {}
        if not isinstance(categories, dict):
            raise ModerationError(f"Malformed moderation categories: {type(categories).__name__}")
        logger.info(f"[MODERATION] flagged '{preview(text)}' categories={[k for k, v in categories.items() if v]}")
        return ModerationResult(flagged=True, denial_message=self._denial_for(categories))

    def _denial_for(self, categories: Dict[str, Any]) -> str:
        for prefix, message in DENIAL_MESSAGES:
            for name, hit in categories.items():
                if hit and (name == prefix or name.startswith(prefix + "/")):
                    return message
        return DEFAULT_DENIAL
