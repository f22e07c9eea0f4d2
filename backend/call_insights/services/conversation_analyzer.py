from typing import Dict, List, Optional
import json
import logging
import re

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


DEAL_STAGES = [
    "Prospecting",
    "Qualification",
    "Needs Analysis",
    "Proposal",
    "Negotiation",
    "Closing",
    "Won",
    "Lost",
]

COMPETITOR_KEYWORDS = [
    "competitor",
    "rival",
    "alternative",
    "other platform",
    "another solution",
    "different system",
]

POSITIVE_WORDS = ["great", "excellent", "interested", "perfect", "love", "amazing", "good", "happy"]
NEGATIVE_WORDS = ["bad", "terrible", "hate", "disappointed", "problem", "issue", "concerned", "worried"]

KEY_POINT_MARKERS = ["needs", "challenge", "requirement", "priority", "budget", "timeline"]

COMPANY_PATTERN = re.compile(r"(?:using|with|from|at)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")


class ConversationAnalysis(BaseModel):
    sentiment: str
    key_points: List[str] = Field(default_factory=list)
    deal_stage: Optional[str] = None
    competitor_mentions: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    summary: str


def parse_vocabulary(raw: Optional[str]) -> Dict[str, str]:
    """Decode the vocabulary_replacements setting; anything malformed yields no replacements."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Ignoring malformed vocabulary_replacements setting: {str(e)}")
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring vocabulary_replacements setting that is not a JSON object")
        return {}
    return {str(k): str(v) for k, v in data.items()}


def apply_vocabulary(text: str, replacements: Dict[str, str]) -> str:
    for source, target in replacements.items():
        if not source:
            continue
        pattern = re.compile(rf"\b{re.escape(source)}\b", re.IGNORECASE)
        text = pattern.sub(lambda _m, t=target: t, text)
    return text


def analyze_sentiment(text: str) -> str:
    lower_text = text.lower()
    positive = sum(1 for w in POSITIVE_WORDS if w in lower_text)
    negative = sum(1 for w in NEGATIVE_WORDS if w in lower_text)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def extract_key_points(lines: List[str]) -> List[str]:
    points = [line[:100] for line in lines if any(m in line for m in KEY_POINT_MARKERS)]
    return points[:5]


def detect_deal_stage(text: str) -> str:
    lower_text = text.lower()
    for stage in DEAL_STAGES:
        if stage.lower() in lower_text:
            return stage
    if "how much" in lower_text or "price" in lower_text:
        return "Negotiation"
    if "schedule" in lower_text or "implement" in lower_text:
        return "Closing"
    if "tell me more" in lower_text or "interested" in lower_text:
        return "Qualification"
    return "Prospecting"


def find_competitor_mentions(text: str) -> List[str]:
    lower_text = text.lower()
    mentions = [k for k in COMPETITOR_KEYWORDS if k in lower_text]
    mentions.extend(m.group(0) for m in list(COMPANY_PATTERN.finditer(text))[:3])
    # Order-preserving de-duplication
    return list(dict.fromkeys(mentions))


def suggest_next_steps(sentiment: str, deal_stage: Optional[str], key_points: List[str]) -> List[str]:
    steps: List[str] = []
    if sentiment == "positive":
        steps += ["Schedule follow-up meeting", "Send proposal"]
    elif sentiment == "negative":
        steps += ["Address concerns", "Schedule call to understand objections"]
    if deal_stage == "Closing":
        steps += ["Prepare contract", "Coordinate implementation timeline"]
    if key_points:
        steps.append("Prepare case studies addressing key concerns")
    return steps


def build_summary(text: str, key_points: List[str]) -> str:
    lines = text.split("\n")
    first_turn = " ".join(lines[:3])
    last_turn = " ".join(lines[-3:])
    return (
        f"Conversation started with: {first_turn[:80]}... "
        f"Key points discussed: {', '.join(key_points)}. "
        f"Concluded with: {last_turn[:80]}..."
    )


def analyze_conversation(transcript: str, replacements: Optional[Dict[str, str]] = None) -> ConversationAnalysis:
    """Rule-based analysis of a call transcript, used when no completion API is configured.

    Vocabulary replacements are applied first as case-insensitive whole-word
    substitutions, so that the rest of the analysis sees corrected terms.
    """
    text = apply_vocabulary(transcript, replacements or {})
    lines = [line for line in text.split("\n") if line.strip()]

    sentiment = analyze_sentiment(text)
    key_points = extract_key_points(lines)
    deal_stage = detect_deal_stage(text)
    return ConversationAnalysis(
        sentiment=sentiment,
        key_points=key_points,
        deal_stage=deal_stage,
        competitor_mentions=find_competitor_mentions(text),
        next_steps=suggest_next_steps(sentiment, deal_stage, key_points),
        summary=build_summary(text, key_points),
    )
