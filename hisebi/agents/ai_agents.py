"""
AI Agents for Hisebi

CRITICAL BOUNDARIES:

INSIGHT AGENT:
   - CAN: Turn already-computed totals into short budgeting tips
   - CANNOT: Change the ledger
   - CANNOT: Leave the caller without an answer

The agent always returns an insight. When Gemini is not configured, the
call fails, or the reply cannot be parsed, the standard recommendations
are returned instead and the reason is handed back to the caller for
logging.
"""

import json
from typing import Any, Optional, Sequence

import google.generativeai as genai
from pydantic import ValidationError
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from hisebi.config import GeminiSettings, get_settings
from hisebi.models.ledger import AIInsight, Transaction, UserProfile
from hisebi.models.views import LedgerTotals


FALLBACK_TIPS = (
    "Review your frequent small expenses (like tea or snacks) to find hidden savings.",
    "Focus on clearing your highest-interest Dhar first to reduce financial burden.",
    "Consider setting a slightly tighter budget goal for next month to build an emergency fund.",
)
FALLBACK_ALERT = "AI Insights currently limited. Showing standard recommendations."


def fallback_insight() -> AIInsight:
    """The fixed set of tips shown whenever the model cannot be used."""
    return AIInsight(
        tips=list(FALLBACK_TIPS),
        alert=FALLBACK_ALERT,
        is_fallback=True,
    )


class InsightParseError(ValueError):
    """The model's reply was empty or not the expected JSON."""
    pass


class InsightAgent:
    """
    AI agent for budgeting tips.

    RESPONSIBILITIES:
    - Build a prompt from totals, profile and recent transactions
    - Ask Gemini for three tips and an optional alert
    - Validate the reply

    BOUNDARIES:
    - NEVER raises to the caller
    - NEVER sees more than the recent transaction window
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        app_name: str = "Hisebi",
    ):
        """
        Args:
            settings: Gemini settings; loaded from the environment if None.
            model: Anything with an async `generate_content_async(prompt)`.
                   Built from `settings` when None and an API key is set.
            app_name: Application name quoted in the prompt.
        """
        self._settings = settings or get_settings().gemini
        self._app_name = app_name
        self._model = model
        if self._model is None and self._settings.is_configured:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            }
        )

    @property
    def is_available(self) -> bool:
        return self._model is not None

    def build_prompt(
        self,
        totals: LedgerTotals,
        profile: UserProfile,
        recent: Sequence[Transaction],
    ) -> str:
        """Describe the user's finances for the model."""
        recent_json = json.dumps(
            [t.model_dump(mode="json", by_alias=True) for t in recent],
            ensure_ascii=False,
        )

        return f"""Analyze the following financial profile (all values in Bangladeshi Taka - BDT) for user "{profile.name}" using the app "{self._app_name}":
- Total Income: ৳{totals.total_income:g}
- Total Expenses: ৳{totals.total_expense:g}
- Total Pending Debt (Dhar): ৳{totals.pending_debt:g}
- Monthly Budget: ৳{profile.monthly_budget:g}
- Recent Transactions: {recent_json}

Provide 3 concise, smart, and actionable financial tips tailored for someone living in Bangladesh.
Also, identify if there is an urgent spending alert based on their budget or income-to-debt ratio.
Reference the user as "{self._app_name} User" if needed.

Respond with ONLY a JSON object in this exact format:
{{"tips": ["tip one", "tip two", "tip three"], "alert": "warning message or null"}}"""

    @staticmethod
    def parse_insight(text: Optional[str]) -> AIInsight:
        """
        Parse the model's JSON reply.

        Raises:
            InsightParseError: If the reply is empty, not JSON, or has no tips
        """
        text = (text or "").strip()
        if not text:
            raise InsightParseError("Empty response from model")

        # Find JSON in response
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            raise InsightParseError("No JSON object in model response")

        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError as e:
            raise InsightParseError(f"Malformed JSON from model: {e}") from e

        if not isinstance(data, dict) or "tips" not in data:
            raise InsightParseError("Model response has no 'tips'")

        try:
            insight = AIInsight(tips=data["tips"], alert=data.get("alert") or None)
        except ValidationError as e:
            raise InsightParseError(f"Model response does not match the schema: {e}") from e

        tips = [tip.strip() for tip in insight.tips if tip.strip()]
        if not tips:
            raise InsightParseError("Model returned no tips")

        return insight.model_copy(update={"tips": tips})

    async def _generate(self, prompt: str) -> Optional[str]:
        """Call the model, retrying transient failures."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=4),
            reraise=True,
        ):
            with attempt:
                response = await self._model.generate_content_async(prompt)
                return response.text
        return None

    async def generate_insights(
        self,
        totals: LedgerTotals,
        profile: UserProfile,
        recent: Sequence[Transaction],
    ) -> tuple[AIInsight, Optional[str]]:
        """
        Generate budgeting tips.

        Returns:
            (insight, failure_reason). `failure_reason` is None when the
            model answered; otherwise the insight is the fallback.
        """
        if not self.is_available:
            return fallback_insight(), "Gemini API key not configured"

        prompt = self.build_prompt(totals, profile, recent)

        try:
            text = await self._generate(prompt)
            return self.parse_insight(text), None
        except InsightParseError as e:
            return fallback_insight(), str(e)
        except Exception as e:
            return fallback_insight(), f"{type(e).__name__}: {e}"
