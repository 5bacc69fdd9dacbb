"""Clause guidance and risky-term scanning tools."""

import re

from langchain_core.tools import tool
from pydantic import BaseModel, Field

CLAUSE_LIBRARY: dict[str, str] = {
    "termination": (
        "Both parties should be able to end the agreement with reasonable written notice (often 30 days). "
        "Watch for termination 'for convenience' granted to only one side, and for fees due on early exit."
    ),
    "liability": (
        "Liability is usually capped, commonly at the fees paid in the previous 12 months. Uncapped or "
        "one-sided liability, or a waiver of all claims by one party only, is a red flag."
    ),
    "indemnification": (
        "Indemnities should be mutual and limited to third-party claims caused by the indemnifying party. "
        "Be wary of promises to indemnify the other side for its own negligence."
    ),
    "payment": (
        "Payment terms should state the amount, due date, invoicing method and late fees. Net 30 is common. "
        "Automatic price increases and unclear expense reimbursement deserve a closer look."
    ),
    "confidentiality": (
        "Confidentiality duties should be mutual, define what counts as confidential, carve out public "
        "information, and end after a fixed period (2 to 5 years is typical)."
    ),
    "dispute resolution": (
        "Check the governing law, the venue, and whether disputes go to court or binding arbitration. "
        "Mandatory arbitration far from where you live and class-action waivers favour the drafter."
    ),
    "intellectual property": (
        "Clarify who owns work product and pre-existing materials. Broad assignments of everything you "
        "create, including outside the engagement, are a common overreach."
    ),
    "non-compete": (
        "Non-competes should be narrow in scope, geography and duration, and some jurisdictions do not "
        "enforce them at all. Non-solicitation clauses are usually a less restrictive alternative."
    ),
    "auto-renewal": (
        "Automatic renewal should come with a reminder and an easy opt-out window before each renewal date. "
        "Long renewal terms combined with short cancellation windows trap customers."
    ),
    "assignment": (
        "Assignment clauses decide whether the contract can be transferred to someone else. Ideally neither "
        "party may assign without consent, except to a successor in a merger."
    ),
}

CLAUSE_ALIASES: dict[str, str] = {
    "limitation of liability": "liability",
    "indemnity": "indemnification",
    "fees": "payment",
    "payment terms": "payment",
    "nda": "confidentiality",
    "arbitration": "dispute resolution",
    "governing law": "dispute resolution",
    "ip": "intellectual property",
    "noncompete": "non-compete",
    "renewal": "auto-renewal",
}

RISK_TERMS: list[tuple[str, str, str]] = [
    (r"unlimited liability", "high", "Exposure is not capped."),
    (r"sole discretion", "medium", "One party can decide unilaterally."),
    (r"automatically renew", "medium", "Renews without an explicit decision."),
    (r"non-?refundable", "medium", "Money paid cannot be recovered."),
    (r"waive[sd]? (?:any|all) (?:rights|claims)", "high", "Gives up legal remedies."),
    (r"binding arbitration", "medium", "Disputes cannot go to court."),
    (r"class action waiver", "high", "Cannot join collective claims."),
    (r"non-?compete", "medium", "Restricts future work."),
    (r"without (?:prior )?notice", "medium", "Changes or termination can happen without warning."),
    (r"indemnify and hold harmless", "medium", "Check whether the indemnity is one-sided."),
    (r"perpetual(?:ly)?", "medium", "Obligation or licence never ends."),
    (r"irrevocabl[ey]", "medium", "Cannot be withdrawn later."),
    (r"for no (?:pay|compensation)", "high", "Work without compensation."),
]


def normalize_clause_name(clause: str) -> str:
    key = " ".join(clause.lower().replace("_", " ").split())
    return CLAUSE_ALIASES.get(key, key)


class LookupClauseInput(BaseModel):
    """Input schema for the clause guidance tool."""

    clause: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Clause topic to look up",
        examples=["termination", "limitation of liability", "confidentiality"],
    )


class ScanRiskTermsInput(BaseModel):
    """Input schema for the risky-term scanner."""

    contract_text: str = Field(..., min_length=1, description="Full or partial contract text to scan")


@tool("lookup_clause", args_schema=LookupClauseInput)
def lookup_clause(clause: str) -> str:
    """Look up plain-English guidance on what a balanced version of a contract clause looks like.

    Use this when explaining why a clause is risky or when suggesting an edit.
    """
    key = normalize_clause_name(clause)
    guidance = CLAUSE_LIBRARY.get(key)
    if guidance is None:
        known = ", ".join(sorted(CLAUSE_LIBRARY))
        return f"No standard guidance for '{clause}'. Known topics: {known}."
    return f"{key.title()}: {guidance}"


@tool("scan_risk_terms", args_schema=ScanRiskTermsInput)
def scan_risk_terms(contract_text: str) -> list[dict[str, str]]:
    """Scan contract text for phrases that commonly signal one-sided or risky terms.

    Returns each match with its risk level and a short note.
    """
    findings = []
    for pattern, risk, note in RISK_TERMS:
        for match in re.finditer(pattern, contract_text, flags=re.IGNORECASE):
            findings.append({"term": match.group(0), "risk": risk, "note": note})
    return findings
