from __future__ import annotations

import json
from typing import Any, Optional

OFFER_SYSTEM_PROMPT = """You are a master offer strategist who creates irresistible offers using the proven 7 P's Framework.

THE 7 P's FRAMEWORK:

1. PRICE - The strategic investment point that makes your offer feel like a no-brainer
   - Deliver significantly more perceived value than cost
   - Price reflects transformation and results, not just time/deliverables
   - The cost of NOT solving the problem should outweigh the price

2. PROMISE - The clear, compelling, measurable outcome the client truly desires
   - Specific and emotionally resonant
   - Tied to tangible results

3. PERSON - The narrowly defined ideal client actively experiencing the problem
   - Speak to one type of person with one core problem
   - They must be ready to take action

4. PROCESS - The unique method, system, or framework that delivers the outcome
   - Your step-by-step path to results
   - Differentiates from competitors

5. PURPOSE - The deeper "why" behind the offer
   - The mission or belief fueling the work
   - Connects emotionally and attracts aligned clients

6. PATHWAY - The purchase path after engagement
   - BOOK_CALL: for offers $2,000+ (high-ticket, needs trust, complex)
   - DIRECT_PURCHASE: for offers under $2,000 (self-serve, fully automated)

7. PROOF - Risk reversal and credibility
   - Strong, specific guarantee that removes the risk of saying yes

Create offers with 3-6 features and 3-5 bonuses. Make the offer feel premium but accessible."""

_OFFER_OUTPUT_SHAPE = """Return ONLY a JSON object with this structure:
{
  "name": "Offer name (benefit-focused, transformation-driven)",
  "tagline": "One-line value proposition that creates desire",
  "price": <number>,
  "currency": "USD",
  "promise": "The specific, measurable transformation outcome (2-3 sentences)",
  "person": "The ideal client who needs this most (2-3 sentences)",
  "process": "The unique method for delivering results (2-3 sentences)",
  "purpose": "The deeper why behind this offer (2-3 sentences)",
  "pathway": "book_call or direct_purchase",
  "features": ["3 to 6 features, each with a clear benefit"],
  "bonuses": ["3 to 5 bonuses, each with a stated value"],
  "guarantee": "Full risk reversal guarantee statement (specific, not generic)"
}

CRITICAL:
- Include 3-6 features and 3-5 bonuses
- Set pathway based on price tier (>= $2000 = book_call, < $2000 = direct_purchase)
- Use extracted pricing data when available - DO NOT ignore detected prices"""

DECK_SYSTEM_PROMPT = "You are a presentation expert. Return ONLY valid JSON arrays with no markdown or explanation."


def _pricing_guidance(extracted_data: Optional[dict[str, Any]]) -> str:
    pricing = (extracted_data or {}).get("pricing") or []
    if not pricing:
        return (
            "NO PRICING DATA DETECTED:\n"
            "- Analyze the transcript content to determine an appropriate price point\n"
            "- Consider the value proposition, target market, and transformation promised\n"
            "- Price should reflect the true value and transformation delivered"
        )
    lines = [
        f"- ${entry.get('amount')} {entry.get('currency', 'USD')} (confidence: {entry.get('confidence', 'medium')})\n"
        f"  Context: {entry.get('context', '')}"
        for entry in pricing
    ]
    return (
        "EXTRACTED PRICING FROM SOURCE:\n"
        + "\n".join(lines)
        + "\n\nPRICING GUIDANCE:\n"
        "- If multiple prices are detected, choose the PRIMARY offer price (usually the highest or most prominent)\n"
        "- Use the extracted pricing as the foundation for your offer\n"
        "- If prices seem to be for different tiers, select the main offer price"
    )


def build_offer_prompt(transcript_text: str, extracted_data: Optional[dict[str, Any]] = None) -> str:
    parts = [
        "Based on this business information, create a compelling offer using the 7 P's Framework:",
        f"TRANSCRIPT:\n{transcript_text}",
    ]
    if extracted_data:
        parts.append(f"KEY INFO:\n{json.dumps(extracted_data, indent=2, default=str)}")
    parts.append(_pricing_guidance(extracted_data))
    parts.append(_OFFER_OUTPUT_SHAPE)
    return "\n\n".join(parts)


def build_deck_chunk_prompt(*, transcript_text: str, framework_section: str, start_slide: int, end_slide: int) -> str:
    return f"""You are an expert presentation strategist creating a personalized webinar deck. Create slides {start_slide}-{end_slide} following the Magnetic Masterclass Framework exactly.

FRAMEWORK TEMPLATE SECTION FOR THESE SLIDES:
{framework_section}

TRANSCRIPT TO EXTRACT CLIENT INFORMATION FROM:
{transcript_text}

INSTRUCTIONS:
1. Follow the framework structure exactly: every slide, every section, every purpose
2. Populate each slide with the client's specifics from the transcript: their story, audience, pain points, method and results
3. Use each slide's Content Strategy, Focus Areas and Purpose from the framework
4. Keep the client's authentic voice and terminology

OUTPUT FORMAT:
Return a JSON array with one object per slide:
{{
  "slideNumber": {start_slide},
  "title": "Slide title from framework",
  "description": "Content based on framework guidance + client specifics (2-3 sentences)",
  "section": "hook, problem, agitate, solution, offer, or close"
}}

Generate slides {start_slide}-{end_slide} as a JSON array. Return ONLY valid JSON, no markdown formatting or explanation."""
