"""Web search tool exposed to the language model on the general chat path."""
from typing import Any, Dict, Optional

from tavily import TavilyClient

from ..app.config import Config
from ..utils.errors import WebSearchError

WEB_SEARCH_DECLARATION: Dict[str, Any] = {
    "name": "web_search",
    "description": (
        "Search the web for up-to-date information such as wedding trends, "
        "event planning advice, or details about places in Mumbai."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
            "max_results": {
                "type": "integer",
                "description": "Number of results to return (1-10)",
            },
        },
        "required": ["query"],
    },
}


def web_search(query: str, max_results: int = 5, api_key: Optional[str] = None,
               client: Optional[TavilyClient] = None) -> Dict[str, Any]:
    query = (query or "").strip()
    if not query:
        raise WebSearchError("query is required")

    if client is None:
        api_key = api_key or Config.TAVILY_API_KEY
        if not api_key:
            raise WebSearchError("TAVILY_API_KEY is not set")
        client = TavilyClient(api_key=api_key)

    max_results = max(1, min(10, int(max_results or 5)))
    try:
        resp = client.search(query=query, max_results=max_results)
    except Exception as e:
        raise WebSearchError(f"web search failed: {e}") from e

    results = resp.get("results") if isinstance(resp, dict) else None
    if not isinstance(results, list):
        results = []

    return {
        "query": query,
        "results": [
            {
                "title": r.get("title"),
                "url": r.get("url"),
                "content": (r.get("content") or "")[:500],
            }
            for r in results
            if isinstance(r, dict)
        ],
    }
