#!/usr/bin/env python3
"""
Retrieval module for the vendor chat backend.

This module embeds a query, runs a nearest-neighbour search against the FAISS
vendor index and normalizes each hit's metadata into a VendorRecord.
"""

import json
import os
from typing import Any, Dict, List, Optional

import numpy as np

from .config import Config
from .embed import EmbeddingClient
from ..schemas.io_models import SearchResult, VendorRecord
from ..utils.errors import RetrievalError
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger()

# First present key wins
FIELD_PRIORITY = {
    "name": ["name", "title", "vendor_name"],
    "location": ["location", "city", "area", "address"],
    "category": ["category", "type", "vendor_type"],
    "price_range": ["price_range", "price", "pricing", "budget"],
    "description": ["description", "short_description", "long_description", "summary"],
}


def _first_present(metadata: Dict[str, Any], keys: List[str]) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def normalize_match(match: Dict[str, Any]) -> VendorRecord:
    """
    Convert one index match into a VendorRecord.

    Args:
        match: Dict with 'id', 'score' and 'metadata' keys

    Returns:
        Normalized vendor record
    """
    metadata = match.get("metadata") or {}
    fields = {field: _first_present(metadata, keys) for field, keys in FIELD_PRIORITY.items()}
    score = match.get("score")
    return VendorRecord(
        id=str(match.get("id")),
        score=float(score) if score is not None else None,
        raw_metadata=dict(metadata),
        **fields,
    )


class FaissVendorIndex:
    """FAISS flat index plus a JSON sidecar holding one metadata record per vector."""

    def __init__(self, index_path: Optional[str] = None, metadata_path: Optional[str] = None):
        """Initialize the index adapter. Files are opened on first query."""
        self.index_path = index_path or Config.VENDOR_INDEX_PATH
        self.metadata_path = metadata_path or Config.VENDOR_METADATA_PATH
        self.faiss_index = None
        self.records: List[Dict[str, Any]] = []

    def connect(self):
        """Load the FAISS index and the metadata sidecar."""
        if self.faiss_index is not None:
            return
        if not os.path.exists(self.index_path):
            raise RetrievalError(f"Vendor index not found at {self.index_path}")
        if not os.path.exists(self.metadata_path):
            raise RetrievalError(f"Vendor metadata not found at {self.metadata_path}")

        import faiss

        try:
            faiss_index = faiss.read_index(self.index_path)
            with open(self.metadata_path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, RuntimeError, ValueError) as e:
            raise RetrievalError(f"Could not open vendor index: {e}") from e

        if faiss_index.ntotal != len(records):
            raise RetrievalError(
                f"Vendor index has {faiss_index.ntotal} vectors but {len(records)} metadata records"
            )
        self.faiss_index = faiss_index
        self.records = records
        logger.info(f"[RETRIEVAL] Loaded FAISS vendor index with {faiss_index.ntotal} vectors")

    def query(self, vector: List[float], top_k: int) -> List[Dict[str, Any]]:
        """
        Search the index for the nearest vendors.

        Args:
            vector: Query embedding
            top_k: Number of neighbours to return

        Returns:
            Matches as dicts with id, score and metadata, nearest first
        """
        self.connect()
        if self.faiss_index.ntotal == 0 or top_k <= 0:
            return []

        query_vector = np.array(vector).astype("float32").reshape(1, -1)
        distances, indices = self.faiss_index.search(query_vector, min(top_k, self.faiss_index.ntotal))

        matches = []
        for position, distance in zip(indices[0], distances[0]):
            if position == -1:  # -1 means no result
                continue
            record = self.records[int(position)]
            matches.append({
                "id": record.get("id", str(position)),
                "score": 1 / (1 + float(distance)),
                "metadata": record.get("metadata", {}),
            })
        return matches


class VendorRetriever:
    """Embeds a query and returns the nearest vendors from the index."""

    def __init__(self, embed_client: Optional[EmbeddingClient] = None,
                 index: Optional[FaissVendorIndex] = None):
        """Initialize the vendor retriever."""
        self.embed_client = embed_client or EmbeddingClient()
        self.index = index or FaissVendorIndex()

    def search(self, query: str, top_k: int = Config.VENDOR_TOP_K) -> SearchResult:
        """
        Search the vendor index.

        Args:
            query: Free-text query
            top_k: Number of nearest neighbours requested

        Returns:
            SearchResult with the raw matches and normalized vendors, index order preserved

        Raises:
            RetrievalError: embedding, index connection or query failure
        """
        if not query or not query.strip():
            return SearchResult()

        logger.info(f"[RETRIEVAL] Vendor search for '{preview(query)}' top_k={top_k}")
        try:
            vector = self.embed_client.generate_embedding(query)
        except Exception as e:
            raise RetrievalError(f"Embedding failed: {e}") from e

        try:
            matches = self.index.query(vector, top_k)
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Vendor index query failed: {e}") from e

        vendors = [normalize_match(m) for m in matches]
        logger.info(f"[RETRIEVAL] Returned {len(vendors)} vendors")
        return SearchResult(matches=matches, vendors=vendors)
