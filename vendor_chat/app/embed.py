#!/usr/bin/env python3
"""
Embedding module for the vendor chat backend.

This module handles text embedding using sentence-transformers.
"""

from typing import List, Optional

from .config import Config
from ..utils.logger import get_logger

logger = get_logger()


class EmbeddingClient:
    """Client for generating text embeddings using sentence-transformers."""

    def __init__(self, model_name: Optional[str] = None):
        """Initialize the embedding client. The model is loaded on first use."""
        self.model_name = model_name or Config.EMBEDDING_MODEL
        self._model = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info(f"[EMBED] Loading embedding model {self.model_name}")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate embedding for a text string.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as a list of floats
        """
        embedding = self.model.encode(text)
        return embedding.tolist()

    def generate_embeddings_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a batch of text strings.

        Args:
            texts: List of texts to embed

        Returns:
            List of embedding vectors
        """
        embeddings = self.model.encode(texts)
        return embeddings.tolist()
