"""
AI Assistant
Author: Bryce Fountain | Skoll.dev

Thin wrapper around the OpenAI chat completions API for drafting letters,
exposés and analyses. Every call either returns text (or parsed JSON) or
raises AssistantError.
"""
import json
import logging
from typing import List, Optional

from openai import OpenAI, OpenAIError

from propdesk import config
from propdesk.documents import base64_payload
from propdesk.errors import AssistantError
from propdesk.models import (
    ContractAnalysis,
    MarketData,
    Property,
    Reminder,
    Tenant,
    Transaction,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an experienced property manager. Write clearly, politely and "
    "precisely. Only use the data you are given."
)

REPORT_MARKER = "[REPORT]"


class Assistant:
    """
    Generate property-management texts with an OpenAI model.

    Args:
        api_key: OpenAI key; falls back to the OPENAI_API_KEY setting
        client: Preconfigured client (used instead of creating one)
    """

    def __init__(self, api_key: str = None, client=None):
        self.api_key = api_key or config.OPENAI_API_KEY
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise AssistantError("No OpenAI API key configured.")
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    # -------------------------------------------------------------------------
    # Low-level calls
    # -------------------------------------------------------------------------
    def _create(self, content, model: str = None, system: str = None, **kwargs) -> str:
        model = model or config.OPENAI_MODEL
        logger.info("AI request (%s)", model)
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system or SYSTEM_PROMPT},
                    {"role": "user", "content": content},
                ],
                temperature=0.2,
                **kwargs,
            )
        except OpenAIError as exc:
            logger.error("AI request failed: %s", exc)
            raise AssistantError(f"AI request failed: {exc}") from exc
        text = response.choices[0].message.content
        if not text:
            raise AssistantError("The AI returned an empty answer.")
        return text

    def complete(self, prompt, model: str = None, system: str = None) -> str:
        """Return the model's text answer to a prompt."""
        return self._create(prompt, model=model, system=system)

    def complete_json(self, prompt, model: str = None, system: str = None) -> dict:
        """Return the model's answer parsed as a JSON object."""
        text = self._create(prompt, model=model, system=system,
                            response_format={"type": "json_object"})
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AssistantError(f"The AI answer is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise AssistantError("The AI answer is not a JSON object.")
        return data

    # -------------------------------------------------------------------------
    # Property texts
    # -------------------------------------------------------------------------
    def generate_expose(self, prop: Property, purpose: str = "Rental",
                        tone: str = "Modern", highlights: str = "") -> str:
        prompt = (
            f"Write a real estate exposé for {prop.name} ({prop.address}). "
            f"Purpose: {purpose}. Highlights: {highlights or 'none given'}. Tone: {tone}. "
            f"Living space: {prop.living_space or prop.total_unit_area()} m², "
            f"units: {prop.unit_count()}, year built: {prop.year_built or 'unknown'}. "
            "Use Markdown."
        )
        return self.complete(prompt)

    def fetch_market_analysis(self, prop: Property) -> MarketData:
        prompt = (
            f"Give a market analysis for the location {prop.address}. "
            "What are current rents and sale prices? Answer as a JSON object with the keys "
            "average_rent_per_m2 (number), average_sale_per_m2 (number), "
            "market_trend ('rising', 'stable' or 'falling') and summary (string)."
        )
        data = self.complete_json(prompt, model=config.OPENAI_ANALYSIS_MODEL)
        trend = data.get("market_trend", "stable")
        try:
            return MarketData(
                average_rent_per_m2=float(data.get("average_rent_per_m2") or 0),
                average_sale_per_m2=float(data.get("average_sale_per_m2") or 0),
                market_trend=trend if trend in ("rising", "stable", "falling") else "stable",
                summary=str(data.get("summary") or "No summary available."),
                sources=[],
            )
        except (TypeError, ValueError) as exc:
            raise AssistantError(f"Unusable market data: {exc}") from exc

    def analyze_contract(self, file_data: str, mime_type: str) -> ContractAnalysis:
        """Extract key terms, unusual clauses and risks from a lease document."""
        instruction = (
            "Analyse this lease agreement. Return a JSON object with the keys "
            "lease_start, lease_end, rent_amount, notice_period (strings, may be null), "
            "unusual_clauses and risks (lists of strings) and summary (string)."
        )
        payload = base64_payload(file_data)
        if mime_type.startswith("image/"):
            attachment = {"type": "image_url",
                          "image_url": {"url": f"data:{mime_type};base64,{payload}"}}
        elif mime_type == "application/pdf":
            attachment = {"type": "file",
                          "file": {"filename": "contract.pdf",
                                   "file_data": f"data:{mime_type};base64,{payload}"}}
        else:
            raise AssistantError(f"Unsupported document type: {mime_type}")

        data = self.complete_json([{"type": "text", "text": instruction}, attachment])
        return ContractAnalysis(
            summary=str(data.get("summary") or ""),
            unusual_clauses=list(data.get("unusual_clauses") or []),
            risks=list(data.get("risks") or []),
            lease_start=data.get("lease_start"),
            lease_end=data.get("lease_end"),
            rent_amount=data.get("rent_amount"),
            notice_period=data.get("notice_period"),
        )

    def generate_energy_consultation(self, prop: Property, info: dict) -> str:
        prompt = (
            f"Energy consultation for {prop.name}, built {info.get('year_built') or prop.year_built}. "
            f"Heating: {info.get('heating_type') or prop.heating_type}, "
            f"insulation: {info.get('insulation', 'standard')}. "
            "Which refurbishments pay off?"
        )
        return self.complete(prompt, model=config.OPENAI_ANALYSIS_MODEL)

    def generate_subsidy_advice(self, prop: Property, measures: List[str]) -> str:
        prompt = (
            f"Which funding programmes exist for the following measures at {prop.name} "
            f"({prop.address}): {', '.join(measures)}?"
        )
        return self.complete(prompt, model=config.OPENAI_ANALYSIS_MODEL)

    # -------------------------------------------------------------------------
    # Investor texts
    # -------------------------------------------------------------------------
    def generate_investment_strategy(self, prop: Property, metrics: dict) -> str:
        prompt = (
            f"Investment check for {prop.name}. Gross yield: {metrics.get('gross_yield', 0):.2f}%, "
            f"net yield: {metrics.get('net_yield', 0):.2f}%, "
            f"monthly cashflow: {metrics.get('monthly_cashflow', 0):.0f} {config.CURRENCY}. "
            "Should the owner hold or sell? Consider the market situation."
        )
        return self.complete(prompt, model=config.OPENAI_ANALYSIS_MODEL)

    def generate_exit_strategy(self, prop: Property, market_value: float, interest: float) -> str:
        prompt = (
            f"Exit strategy for {prop.name}. Market value: {market_value:,.0f} {config.CURRENCY}. "
            f"Current interest rate: {interest}%. When is the best time to sell?"
        )
        return self.complete(prompt, model=config.OPENAI_ANALYSIS_MODEL)

    # -------------------------------------------------------------------------
    # Correspondence
    # -------------------------------------------------------------------------
    def generate_reminder_email(self, reminder: Reminder, prop: Optional[Property] = None) -> str:
        prompt = (
            f"Draft an e-mail for: {reminder.title} ({reminder.category.value}, due {reminder.date}). "
            f"Property: {prop.name if prop else 'general'}."
        )
        return self.complete(prompt)

    def generate_tenant_financial_email(self, tenant: Tenant, prop: Property,
                                        transactions: List[Transaction], topic: str) -> str:
        topics = {
            "rent_adjustment": "a rent adjustment",
            "utility_payment": "the utility prepayment and statement",
        }
        booked = sum(t.amount for t in transactions if t.property_id == prop.id)
        prompt = (
            f"Write a professional e-mail to the tenant {tenant.full_name()} about "
            f"{topics.get(topic, topic)} for the property {prop.name} ({prop.address}). "
            f"Bookings on record for this property: {len(transactions)} "
            f"totalling {booked:,.2f} {config.CURRENCY}."
        )
        return self.complete(prompt)

    def generate_letter(self, tenant: Optional[Tenant], prop: Property, subject: str, notes: str = "") -> str:
        recipient = tenant.full_name() if tenant else "the tenants"
        prompt = (
            f"Write a formal letter to {recipient} of {prop.name} ({prop.address}). "
            f"Subject: {subject}. Points to cover: {notes or 'none'}."
        )
        return self.complete(prompt)

    def feedback_reply(self, message: str) -> str:
        prompt = (
            f"A user of the property management app gives this feedback or feature request: "
            f"\"{message}\". Reply briefly and politely as the developer's assistant and confirm "
            f"the request was noted. End with a separate block starting with {REPORT_MARKER} "
            "that summarises the feedback so it can be sent by e-mail."
        )
        return self.complete(prompt)


def split_feedback_report(text: str) -> tuple:
    """Split a feedback reply into (visible reply, report block or '')."""
    if REPORT_MARKER not in text:
        return text.strip(), ""
    reply, report = text.split(REPORT_MARKER, 1)
    return reply.strip(), report.strip()
