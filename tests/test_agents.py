"""Tests for the insight agent. No real API calls."""

import pytest

from hisebi.agents import (
    FALLBACK_ALERT,
    FALLBACK_TIPS,
    InsightAgent,
    InsightParseError,
    fallback_insight,
)
from hisebi.aggregation import compute_totals
from hisebi.models.ledger import UserProfile

from tests.factories import FakeModel, gemini_settings, make_transaction


TRANSACTIONS = [
    make_transaction("income", 30000, "Salary"),
    make_transaction("expense", 1200, "Food", note="Bazar"),
]
TOTALS = compute_totals(TRANSACTIONS, [])
PROFILE = UserProfile(name="Nusrat", monthly_budget=20000)


def agent_with(model, retry_attempts=1, app_name="Hisebi"):
    return InsightAgent(settings=gemini_settings(retry_attempts), model=model, app_name=app_name)


class TestParseInsight:
    """Tests for reading the model's reply."""

    def test_valid_reply(self):
        """Test tips and a null alert."""
        insight = InsightAgent.parse_insight('{"tips": ["a", "b", "c"], "alert": null}')
        assert insight.tips == ["a", "b", "c"]
        assert insight.alert is None
        assert insight.is_fallback is False

    def test_reply_wrapped_in_text(self):
        """Test JSON surrounded by prose or fences is found."""
        insight = InsightAgent.parse_insight('```json\n{"tips": ["save"], "alert": "Over budget"}\n```')
        assert insight.tips == ["save"]
        assert insight.alert == "Over budget"

    def test_empty_alert_is_none(self):
        """Test an empty alert string means no alert."""
        assert InsightAgent.parse_insight('{"tips": ["x"], "alert": ""}').alert is None

    @pytest.mark.parametrize("text", [
        None,
        "",
        "no json here",
        "{broken",
        '{"alert": "x"}',
        '{"tips": "not a list"}',
        '{"tips": ["  "]}',
    ])
    def test_bad_replies(self, text):
        """Test every malformed reply raises InsightParseError."""
        with pytest.raises(InsightParseError):
            InsightAgent.parse_insight(text)


class TestPrompt:
    """Tests for the prompt sent to Gemini."""

    def test_prompt_contents(self):
        """Test the prompt names the totals, budget and app."""
        prompt = agent_with(FakeModel(), app_name="Dor-Dam").build_prompt(TOTALS, PROFILE, TRANSACTIONS)
        assert "৳30000" in prompt
        assert "৳1200" in prompt
        assert "৳20000" in prompt
        assert "Nusrat" in prompt
        assert "Dor-Dam" in prompt
        assert "Bazar" in prompt
        assert '"type": "expense"' in prompt


class TestGenerateInsights:
    """Tests for the full request with fallbacks."""

    @pytest.mark.asyncio
    async def test_happy_path(self):
        """Test a valid reply is returned without a failure reason."""
        model = FakeModel()
        insight, failure = await agent_with(model).generate_insights(TOTALS, PROFILE, TRANSACTIONS)
        assert failure is None
        assert len(insight.tips) == 3
        assert insight.is_fallback is False
        assert model.calls == 1

    @pytest.mark.asyncio
    async def test_not_configured(self):
        """Test no API key means the standard tips without a call."""
        agent = InsightAgent(settings=gemini_settings())
        assert agent.is_available is False
        insight, failure = await agent.generate_insights(TOTALS, PROFILE, TRANSACTIONS)
        assert insight == fallback_insight()
        assert "not configured" in failure

    @pytest.mark.asyncio
    async def test_exception_falls_back(self):
        """Test a network error yields the standard tips."""
        model = FakeModel(error=ConnectionError("offline"))
        insight, failure = await agent_with(model).generate_insights(TOTALS, PROFILE, TRANSACTIONS)
        assert insight.tips == list(FALLBACK_TIPS)
        assert insight.alert == FALLBACK_ALERT
        assert insight.is_fallback is True
        assert "offline" in failure

    @pytest.mark.asyncio
    async def test_empty_text_falls_back(self):
        """Test an empty body yields the standard tips."""
        insight, failure = await agent_with(FakeModel(text="")).generate_insights(
            TOTALS, PROFILE, TRANSACTIONS
        )
        assert insight.is_fallback is True
        assert failure

    @pytest.mark.asyncio
    async def test_malformed_json_falls_back(self):
        """Test malformed JSON yields the standard tips."""
        insight, _ = await agent_with(FakeModel(text='{"tips": [')).generate_insights(
            TOTALS, PROFILE, TRANSACTIONS
        )
        assert insight.is_fallback is True

    @pytest.mark.asyncio
    async def test_retries_before_falling_back(self):
        """Test transient failures are retried the configured number of times."""
        model = FakeModel(error=TimeoutError("slow"))
        insight, _ = await agent_with(model, retry_attempts=2).generate_insights(
            TOTALS, PROFILE, TRANSACTIONS
        )
        assert model.calls == 2
        assert insight.is_fallback is True
