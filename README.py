"""
VENDOR-CHAT: System Documentation
=================================

Module-style README for the vendor chat assistant: a chat backend that helps
couples and families find wedding and event vendors in Mumbai.

How to use this file
--------------------
- View in an editor for structured reading.
- Run `python README.py` to print the outline.

Table of Contents
-----------------
1. System Overview
2. Architecture
3. Request Flow
4. Vendor Index
5. Sessions
6. Message Wall
7. Configuration & Environment
8. Testing
9. Security & PII Handling

"""

from __future__ import annotations

import textwrap


def section(title: str, body: str) -> str:
    return f"\n{title}\n{'-' * len(title)}\n{body.strip()}\n"


SYSTEM_OVERVIEW = section(
    "1. System Overview",
    """
    The assistant answers two kinds of questions. Vendor questions ("caterers
    in Andheri", "wedding photographers") are answered straight from a FAISS
    vendor index. Everything else goes to Gemini, which may call a web search
    tool. Every user turn passes a moderation check first.
    """,
)


ARCHITECTURE = section(
    "2. Architecture",
    """
    - `vendor_chat/app/main.py`: FastAPI app (`/api/chat`, `/session`, `/render`, `/health`).
    - `vendor_chat/app/controller.py`: ChatRouter, one of denial / vendor / general per turn.
    - `vendor_chat/app/stream.py`: StreamWriter and the SSE encoder.
    - `vendor_chat/app/generate.py`: Gemini streaming client with the tool loop.
    - `vendor_chat/app/retrieval.py`, `embed.py`: sentence-transformers + FAISS search.
    - `vendor_chat/app/moderation.py`: OpenAI moderations client.
    - `vendor_chat/app/session.py`: SQLAlchemy-backed session state.
    - `vendor_chat/render/`: message wall and sentinel payload handling.
    """,
)


REQUEST_FLOW = section(
    "3. Request Flow",
    """
    1. The client POSTs the full message history to `/api/chat`.
    2. The latest user utterance is moderated; flagged turns get a denial text.
    3. Keyword rules pick the vendor path or the general path.
    4. The response is a UI message stream: `data: {json}` lines ending with
       `data: [DONE]`, header `x-vercel-ai-ui-message-stream: v1`.
    """,
)


VENDOR_INDEX = section(
    "4. Vendor Index",
    """
    Build it with `vendor-chat-ingest vendors.json` (or a CSV). The script writes
    `VENDOR_INDEX_PATH` (FAISS IndexFlatL2) and `VENDOR_METADATA_PATH` (one
    metadata record per vector, same order).
    """,
)


SESSIONS = section(
    "5. Sessions",
    """
    One JSON state blob per session key in `convo_sessions`. Updates replace the
    state wholesale; the last write wins.
    """,
)


MESSAGE_WALL = section(
    "6. Message Wall",
    """
    `/render` turns a message list into display items: visible text with
    sentinel JSON blocks removed, a structured payload for cards, reasoning
    texts, a streaming flag and a scroll hint.
    """,
)


CONFIG_ENV = section(
    "7. Configuration & Environment",
    """
    `.env` is loaded with python-dotenv. Required: `GEMINI_API_KEY`,
    `MODERATION_API_KEY` (or `OPENAI_API_KEY`). Optional: `TAVILY_API_KEY`,
    `DATABASE_URL`, `VENDOR_INDEX_PATH`, `VENDOR_METADATA_PATH`,
    `EMBEDDING_MODEL`, `MODERATION_FAIL_CLOSED`, `EMIT_VENDOR_PAYLOAD`,
    `WALL_AUTOSCROLL`, `LOG_LEVEL`.
    """,
)


TESTING = section(
    "8. Testing",
    """
    `pip install -e .[test]` then `python -m pytest tests`. External services are
    mocked; the session store uses in-memory SQLite.
    """,
)


SECURITY = section(
    "9. Security & PII Handling",
    """
    Utterances are logged only through `utils.security.preview`, which masks
    emails and phone numbers and truncates the text.
    """,
)


def as_text() -> str:
    return "\n".join(
        [
            SYSTEM_OVERVIEW,
            ARCHITECTURE,
            REQUEST_FLOW,
            VENDOR_INDEX,
            SESSIONS,
            MESSAGE_WALL,
            CONFIG_ENV,
            TESTING,
            SECURITY,
        ]
    )


def main() -> None:
    print(textwrap.dedent(as_text()))


if __name__ == "__main__":
    main()
