#!/usr/bin/env python3
"""
Vendor ingestion script for the vendor chat backend.

This script reads vendor records (JSON list or CSV), embeds one document per
vendor and writes the FAISS index plus the metadata sidecar read by
FaissVendorIndex.
"""

import csv
import json
import os
import uuid
from typing import Any, Dict, List, Optional

import numpy as np

from ..app.config import Config
from ..app.embed import EmbeddingClient
from ..utils.logger import get_logger

logger = get_logger()

# Fields that go into the embedded document, in order
DOCUMENT_FIELDS = ["name", "title", "vendor_name", "category", "type", "location", "city", "area",
                   "price_range", "description", "short_description", "long_description"]


def load_vendors(filepath: str) -> List[Dict[str, Any]]:
    """
    Load vendor records from a JSON or CSV file.

    Args:
        filepath: Path to a .json (list of objects) or .csv file

    Returns:
        List of vendor dicts
    """
    if filepath.endswith(".json"):
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("vendors", [])
        return [v for v in data if isinstance(v, dict)]

    if filepath.endswith(".csv"):
        with open(filepath, "r", encoding="utf-8", newline="") as f:
            return [{k: v for k, v in row.items() if v not in (None, "")} for row in csv.DictReader(f)]

    raise ValueError(f"Unsupported vendor file type: {filepath}")


def vendor_document(vendor: Dict[str, Any]) -> str:
    """Text that represents a vendor in the embedding space."""
    parts = []
    for field in DOCUMENT_FIELDS:
        value = vendor.get(field)
        if value not in (None, ""):
            parts.append(f"{field}: {value}")
    return "; ".join(parts)


def build_vendor_index(vendors: List[Dict[str, Any]], index_path: str, metadata_path: str,
                       embed_client: Optional[EmbeddingClient] = None) -> int:
    """
    Embed vendors and write the FAISS index and metadata sidecar.

    Args:
        vendors: Vendor dicts
        index_path: Where to write the FAISS index
        metadata_path: Where to write the metadata JSON
        embed_client: Embedding client, a default one when omitted

    Returns:
        Number of vendors indexed
    """
    import faiss

    vendors = [v for v in vendors if vendor_document(v)]
    if not vendors:
        logger.warning("[INGEST] No vendors found, skipping FAISS index creation")
        return 0

    embed_client = embed_client or EmbeddingClient()
    texts = [vendor_document(v) for v in vendors]
    logger.info(f"[INGEST] Generating embeddings for {len(texts)} vendors...")
    embeddings_array = np.array(embed_client.generate_embeddings_batch(texts)).astype("float32")

    index = faiss.IndexFlatL2(embeddings_array.shape[1])
    index.add(embeddings_array)

    records = [{"id": str(v.get("id") or uuid.uuid4()), "metadata": v} for v in vendors]

    for path in (index_path, metadata_path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
    faiss.write_index(index, index_path)
    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2, ensure_ascii=False)

    logger.info(f"[INGEST] FAISS index created with {index.ntotal} vectors")
    return index.ntotal


def main():
    """Main function to run the vendor ingestion."""
    import argparse

    parser = argparse.ArgumentParser(description="Build the FAISS vendor index")
    parser.add_argument("input", help="Vendor file (.json or .csv)")
    parser.add_argument("--index", default=Config.VENDOR_INDEX_PATH,
                        help="Output path for the FAISS index")
    parser.add_argument("--metadata", default=Config.VENDOR_METADATA_PATH,
                        help="Output path for the metadata sidecar")
    parser.add_argument("--model", default=Config.EMBEDDING_MODEL,
                        help="sentence-transformers model name")

    args = parser.parse_args()

    vendors = load_vendors(args.input)
    build_vendor_index(vendors, args.index, args.metadata, EmbeddingClient(args.model))


if __name__ == "__main__":
    main()
