"""Attorney review request tool. Runs only after the user approves it."""

from datetime import UTC, datetime
from typing import Literal

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from contract_guard.models.messages import generate_id
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


class AttorneyReviewInput(BaseModel):
    """Input schema for requesting a human attorney review."""

    summary: str = Field(
        ...,
        min_length=10,
        max_length=2000,
        description="Short summary of the contract and the clauses the attorney should look at",
    )
    urgency: Literal["low", "normal", "high"] = Field(
        "normal",
        description="How soon the user needs the review",
    )


@tool("request_attorney_review", args_schema=AttorneyReviewInput)
def request_attorney_review(summary: str, urgency: str = "normal") -> str:
    """File a request for a qualified attorney to review the contract.

    The user is asked to approve this before it is sent. Suggest it when the
    overall risk is high or the user is about to sign something significant.
    """
    reference = f"REV-{generate_id()[:8].upper()}"
    logger.info(f"Attorney review {reference} filed with urgency {urgency}: {summary[:80]}")
    filed_at = datetime.now(UTC).strftime("%Y-%m-%d %H:%M UTC")
    return f"Review request {reference} filed at {filed_at} with {urgency} urgency."
