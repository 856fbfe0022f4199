"""Claim assistant: free-form questions answered from the claim file."""

from __future__ import annotations

import logging

from ..ai.llm import call_llm_with_meta
from ..ai.prompts import claim_chat_prompt
from ..errors import ExternalServiceError, InvalidArgument
from ..utils.validation import as_text
from .narrative import missing_documentation

logger = logging.getLogger(__name__)

MAX_QUESTION_CHARS = 2000


def answer_claim_question(claim, message: str) -> dict:
    question = as_text(message, "Message")
    if not question:
        raise InvalidArgument("Message is required.")
    if len(question) > MAX_QUESTION_CHARS:
        raise InvalidArgument(f"Message must be {MAX_QUESTION_CHARS} characters or fewer.")

    try:
        meta = call_llm_with_meta(claim_chat_prompt(claim, question), temperature=0.3)
    except ExternalServiceError:
        logger.warning("Claim chat unavailable for claim %s", claim.id)
        meta = None

    if meta is None or meta["model_source"] == "mock":
        gaps = missing_documentation(claim)
        answer = (
            f"Claim {claim.claim_number} is in the '{claim.lifecycle_stage.replace('_', ' ')}' stage. "
            "The AI assistant is not configured, so only a file summary is available."
        )
        if gaps:
            answer += " Outstanding items: " + "; ".join(gaps) + "."
        return {"answer": answer, "model_source": "template", "model": None}

    return {"answer": meta["text"], "model_source": meta["model_source"], "model": meta["model"]}
