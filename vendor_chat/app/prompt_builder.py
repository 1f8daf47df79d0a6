#!/usr/bin/env python3
"""
Prompt builder module for the vendor chat backend.

This module holds the system prompt for the general chat path, converts UI
messages into the model's content shape and builds the editorial summary
prompt for a single vendor.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from .config import Config
from ..schemas.io_models import Message

NOT_PROVIDED = "not provided"

SYSTEM_PROMPT = """You are the concierge of a wedding and events marketplace in Mumbai. You help couples and families plan celebrations and discover vendors: venues, banquet halls, caterers, photographers, decorators, makeup artists and DJs.

PERSONALITY & TONE:
- Be warm and conversational, but keep responses concise
- Use natural, everyday language, never robotic
- Give direct, useful answers without rambling

RESPONSE RULES:
- Focus on weddings, events and celebrations in and around Mumbai
- Use the web_search tool when the user needs current information (trends, muhurat dates, local rules, places); call one tool at a time
- Never invent vendor names, prices, phone numbers or reviews. If you don't know, say so and suggest asking for a vendor search (e.g. "photographers in Bandra")
- For questions outside events and celebrations, answer briefly and steer back to event planning

FORMATTING:
- Use short paragraphs and dash lists
- Quote prices in INR when you have them
"""

# UI role -> model role; roles missing here are not sent
MODEL_ROLES = {"user": "user", "assistant": "model"}


def _as_dict(value: Union[BaseModel, Dict[str, Any], Any]) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _field(vendor: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = vendor.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def build_editorial_prompt(vendor: Union[BaseModel, Dict[str, Any]], reviews: List[Any],
                           max_reviews: int = Config.MAX_EDITORIAL_REVIEWS) -> str:
    """
    Build the structured editorial prompt for one vendor.

    Only values present in `vendor` and `reviews` are templated; anything
    missing renders as "not provided".

    Args:
        vendor: Vendor record (model or plain dict)
        reviews: Reviews in display order
        max_reviews: Number of leading reviews kept

    Returns:
        Prompt text for the language model
    """
    vendor_data = _as_dict(vendor) or {}
    kept_reviews = [_as_dict(r) for r in list(reviews or [])[:max(0, max_reviews)]]

    name = _field(vendor_data, "name") or "Vendor"
    lead = _field(vendor_data, "short_description", "long_description", "description") or "Description not provided."
    category = _field(vendor_data, "category") or NOT_PROVIDED
    location = _field(vendor_data, "location") or NOT_PROVIDED
    price_range = _field(vendor_data, "price_range") or NOT_PROVIDED

    vendor_json = json.dumps(vendor_data, indent=2, ensure_ascii=False, default=str)
    reviews_json = json.dumps(kept_reviews, indent=2, ensure_ascii=False, default=str)

    return f"""
Create a structured editorial summary based ONLY on the facts provided.

### JSON DATA
Vendor:
{vendor_json}

Reviews ({len(kept_reviews)} of {len(reviews or [])}):
{reviews_json}

### STRICT RULES
- DO NOT hallucinate ANY facts.
- Use only content from "vendor" and "reviews".
- If data missing, say "{NOT_PROVIDED}".
- Tone: objective, premium editorial.

### OUTPUT FORMAT (STRICT)

### **{name}**
{lead}
Category: {category} | Location: {location} | Price range: {price_range}

---

### **1. Strengths (Hits)**
(List 3-6 points based ONLY on positive reviews + vendor fields.)

### **2. Weaknesses (Misses)**
(List 2-4 recurring complaints ONLY if present in reviews.)

### **3. Signature Highlights**
- For caterers: dishes
- For venues: ambience, facilities
- For decorators: styles, USPs

### **4. Pricing Summary**
- Min-max price from the vendor data ({price_range})
- If reviews mention price/value, summarise

### **5. Best For**
- Type of events this vendor fits (based on reviews + category)

### **6. Review Sentiment Snapshot**
Summarize true recurring themes: food, service, reliability, ambience, etc.

### **7. Reviewer Quotes**
3 short quotes (direct extracts from reviews ONLY)

---
Return ONLY the formatted editorial."""


class PromptBuilder:
    """Builds model inputs for the general chat path."""

    def __init__(self, system_prompt: str = SYSTEM_PROMPT):
        """Initialize the prompt builder."""
        self.system_prompt = system_prompt

    def build_system_instruction(self, messages: List[Message]) -> Dict[str, Any]:
        """System prompt plus the text of any system messages in the history."""
        texts = [self.system_prompt]
        texts.extend(m.text() for m in messages if m.role == "system" and m.text())
        return {"parts": [{"text": "\n\n".join(texts)}]}

    def build_contents(self, messages: List[Message]) -> List[Dict[str, Any]]:
        """
        Convert UI messages to the model's content list.

        Args:
            messages: Full conversation history

        Returns:
            Contents with 'user'/'model' roles, text parts only
        """
        contents = []
        for message in messages:
            role = MODEL_ROLES.get(message.role)
            text = message.text()
            if role is None or not text:
                continue
            contents.append({"role": role, "parts": [{"text": text}]})
        return contents
