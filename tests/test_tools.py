"""Tests for contract review tools and the registry."""

import pytest
from pydantic import ValidationError

from contract_guard.tools.attorney_review import AttorneyReviewInput, request_attorney_review
from contract_guard.tools.clauses import LookupClauseInput, lookup_clause, normalize_clause_name, scan_risk_terms
from contract_guard.tools.registry import ToolsRegistry


class TestLookupClause:
    """Tests for clause guidance lookup."""

    def test_known_clause(self):
        """Test guidance for a library topic."""
        result = lookup_clause.invoke({"clause": "termination"})
        assert result.startswith("Termination:")

    def test_alias_and_case(self):
        """Test that aliases and casing resolve to the same topic."""
        assert normalize_clause_name("Limitation  of Liability") == "liability"
        assert lookup_clause.invoke({"clause": "NDA"}).startswith("Confidentiality:")

    def test_unknown_clause(self):
        """Test the response for a topic outside the library."""
        result = lookup_clause.invoke({"clause": "force majeure"})
        assert "No standard guidance" in result
        assert "termination" in result

    def test_input_validation(self):
        """Test that an empty clause name is rejected."""
        with pytest.raises(ValidationError):
            LookupClauseInput(clause="")


class TestScanRiskTerms:
    """Tests for the risky-term scanner."""

    def test_finds_risky_terms(self):
        """Test that known phrases are reported with their risk."""
        text = (
            "The Company may terminate without notice at its sole discretion. "
            "The user agrees to wash the company car every day for no pay."
        )

        findings = scan_risk_terms.invoke({"contract_text": text})

        terms = {f["term"].lower(): f["risk"] for f in findings}
        assert terms["sole discretion"] == "medium"
        assert terms["for no pay"] == "high"
        assert "without notice" in terms

    def test_clean_text(self):
        """Test that neutral text has no findings."""
        assert scan_risk_terms.invoke({"contract_text": "Payment is due within 30 days of invoice."}) == []


class TestAttorneyReview:
    """Tests for the confirmation-gated review request."""

    def test_files_request(self):
        """Test that running the tool returns a reference."""
        result = request_attorney_review.invoke({"summary": "Lease with uncapped liability", "urgency": "high"})
        assert result.startswith("Review request REV-")
        assert "high urgency" in result

    def test_invalid_urgency(self):
        """Test that urgency is restricted to known values."""
        with pytest.raises(ValidationError):
            AttorneyReviewInput(summary="A long enough summary", urgency="yesterday")


class TestToolsRegistry:
    """Tests for the tools registry."""

    def test_default_tools(self):
        """Test that the default tools are registered."""
        registry = ToolsRegistry()
        assert {t.name for t in registry.get_langchain_tools()} == {"lookup_clause", "scan_risk_terms", "request_attorney_review"}

    def test_auto_executors_leave_confirmation_tools_empty(self):
        """Test the reconcile registry shape."""
        executors = ToolsRegistry().auto_executors()

        assert executors["lookup_clause"] is not None
        assert executors["scan_risk_terms"] is not None
        assert executors["request_attorney_review"] is None

    def test_confirmation_executors(self):
        """Test that only confirmation tools have approval executors."""
        assert list(ToolsRegistry().confirmation_executors()) == ["request_attorney_review"]

    @pytest.mark.asyncio
    async def test_auto_executor_runs_tool(self):
        """Test that the executor validates input and runs the tool."""
        executor = ToolsRegistry().auto_executors()["lookup_clause"]

        result = await executor({"clause": "payment"})

        assert result.startswith("Payment:")

    @pytest.mark.asyncio
    async def test_auto_executor_rejects_bad_input(self):
        """Test that invalid tool input raises, for the reconciler to record."""
        executor = ToolsRegistry().auto_executors()["lookup_clause"]

        with pytest.raises(ValidationError):
            await executor({})
