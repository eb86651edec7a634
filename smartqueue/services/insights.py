"""
SmartQueue — AI insights (Gemini REST API)

Every call has a deterministic fallback. A missing API key, a transport
error or an unparseable answer all degrade to the fallback; nothing here
raises to the caller and nothing is retried.
"""
import json
import logging
from datetime import datetime

import httpx
from pydantic import BaseModel

from smartqueue.core.config import Settings
from smartqueue.engine.clock import round_half_up
from smartqueue.schemas.queue import HistoryEntry, OrderSummaryItem, QueueStats

logger = logging.getLogger(__name__)

QUEUE_CLEAR_MESSAGE = (
    "✓ Queue Clear\n"
    "• No active orders in queue\n"
    "• Perfect time to restock and prepare for next rush\n"
    "• System ready for incoming orders"
)
DEFAULT_AVG_PREP_MINUTES = 8
PEAK_MULTIPLIER = 1.4


class InsightUnavailable(Exception):
    pass


class WaitPrediction(BaseModel):
    estimated_minutes: int
    reasoning: str


class EtaPrediction(BaseModel):
    estimated_minutes: int
    reasoning: str
    is_peak_hour: bool


class CompletionAnalysis(BaseModel):
    should_complete: bool
    reasoning: str


def is_peak_hour(hour: int) -> bool:
    return 11 <= hour <= 14 or 17 <= hour <= 19


class InsightsService:

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._settings.GEMINI_API_KEY)

    def _now(self) -> datetime:
        return datetime.now(tz=self._settings.tzinfo)

    async def _generate(self, model: str, prompt: str, as_json: bool = False) -> str:
        """Return the model's text. Raises InsightUnavailable on any failure."""
        if not self.enabled:
            raise InsightUnavailable("GEMINI_API_KEY is not set")
        body: dict = {"contents": [{"parts": [{"text": prompt}]}]}
        if as_json:
            body["generationConfig"] = {"responseMimeType": "application/json"}
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                r = await client.post(
                    f"{self._settings.GEMINI_API_URL}/models/{model}:generateContent",
                    params={"key": self._settings.GEMINI_API_KEY},
                    json=body,
                )
                r.raise_for_status()
                data = r.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            raise InsightUnavailable(str(exc)) from exc

    async def _generate_json(self, model: str, prompt: str) -> dict:
        text = await self._generate(model, prompt, as_json=True)
        try:
            parsed = json.loads(text or "{}")
        except ValueError as exc:
            raise InsightUnavailable(f"Unparseable model output: {exc}") from exc
        if not isinstance(parsed, dict):
            raise InsightUnavailable("Model output is not an object")
        return parsed

    # ── Admin insights ───────────────────────────────────────────────────────

    async def queue_insights(self, stats: QueueStats) -> str:
        if stats.total_orders_today == 0 or stats.active_queue_length == 0:
            return QUEUE_CLEAR_MESSAGE
        prompt = (
            "Analyze these canteen stats and provide brief insights:\n"
            f"- Total Orders Today: {stats.total_orders_today}\n"
            f"- Avg Wait Time: {stats.average_wait_time} minutes\n"
            f"- Active Queue: {stats.active_queue_length}\n"
            f"- Peak Hour: {stats.peak_hour}\n\n"
            "Provide 3 bullet points about queue efficiency and suggestions. "
            "Keep each point under 20 words."
        )
        try:
            return await self._generate(self._settings.GEMINI_INSIGHT_MODEL, prompt) or "Analysis complete."
        except InsightUnavailable as exc:
            logger.warning("Queue insights unavailable: %s", exc)
            return (
                "Queue Summary\n"
                f"• Total Orders: {stats.total_orders_today}\n"
                f"• Avg Wait: {stats.average_wait_time}m\n"
                f"• Peak: {stats.peak_hour}"
            )

    async def detailed_report(
        self,
        stats: QueueStats,
        canteen_name: str,
        summary: list[OrderSummaryItem] | None = None,
    ) -> str:
        generated = self._now().strftime("%Y-%m-%d %H:%M")
        sales = ""
        if summary:
            lines = "\n".join(
                f"{i}. {s.food_item}: {s.count} orders sold, Total prep time: {s.total_prep_time} minutes"
                for i, s in enumerate(summary, start=1)
            )
            sales = (
                f"\n\nTODAY'S FOOD ITEM SALES DATA:\n{lines}\n"
                f"Best Selling Item: {summary[0].food_item} with {summary[0].count} orders"
            )
        prompt = (
            "You are a professional business analyst for a university canteen.\n"
            "Write a detailed admin report using ONLY the data below. Use section headers "
            "with ===, bullet points for lists and numbered recommendations.\n\n"
            f"Canteen: {canteen_name}\nReport Generated: {generated}\n\n"
            f"- Total Orders Processed: {stats.total_orders_today}\n"
            f"- Average Wait Time: {stats.average_wait_time} minutes\n"
            f"- Currently Active Queue: {stats.active_queue_length} orders\n"
            f"- Peak Hour: {stats.peak_hour}{sales}\n\n"
            "Sections: 1. Executive summary 2. Sales performance 3. Operational efficiency "
            "4. Data-driven recommendations (5-7) 5. Sales forecast 6. Critical alerts."
        )
        try:
            text = await self._generate(self._settings.GEMINI_INSIGHT_MODEL, prompt)
        except InsightUnavailable as exc:
            logger.warning("Detailed report unavailable, using basic report: %s", exc)
            return basic_report(stats, canteen_name, summary, generated)
        if not text:
            return basic_report(stats, canteen_name, summary, generated)
        return text.replace("\n\n", "\n").strip()

    # ── Wait-time prediction ─────────────────────────────────────────────────

    async def predict_wait_time(self, queue_length: int, food_item: str, stats: QueueStats) -> WaitPrediction:
        fallback = max(5, queue_length * 3)
        now = self._now()
        prompt = (
            "You are an AI managing a university canteen queue.\n"
            f"- Queue: {queue_length} people\n- Item: \"{food_item}\"\n"
            f"- Time: {now.strftime('%A, %I:%M %p')}\n- Avg Wait: {stats.average_wait_time} min\n"
            "Estimate the wait and give a 1-sentence friendly reason. "
            "Respond as JSON with keys estimatedMinutes (integer) and reasoning (string)."
        )
        try:
            data = await self._generate_json(self._settings.GEMINI_PREDICTION_MODEL, prompt)
        except InsightUnavailable as exc:
            logger.warning("Wait prediction unavailable: %s", exc)
            reason = "Estimated based on queue length." if not self.enabled else "Standard estimation."
            return WaitPrediction(estimated_minutes=fallback, reasoning=reason)
        return WaitPrediction(
            estimated_minutes=_positive_int(data.get("estimatedMinutes")) or fallback,
            reasoning=data.get("reasoning") or "Calculating based on live traffic.",
        )

    async def predict_eta(
        self,
        food_item: str,
        queue_length: int,
        history: list[HistoryEntry],
    ) -> EtaPrediction:
        now = self._now()
        peak = is_peak_hour(now.hour)
        if not self.enabled:
            return EtaPrediction(
                estimated_minutes=min(15, max(5, queue_length * 2)),
                reasoning="Based on queue length.",
                is_peak_hour=False,
            )

        item_history = [h for h in history if h.food_item == food_item]
        avg_prep = (
            round_half_up(sum(h.prep_time_minutes for h in item_history) / len(item_history))
            if item_history else DEFAULT_AVG_PREP_MINUTES
        )
        prompt = (
            "You predict food preparation times in a university canteen.\n"
            f"- Food Item: \"{food_item}\"\n- Queue Length: {queue_length} people\n"
            f"- Current Time: {now.hour}:00 on {now.strftime('%A')}\n"
            f"- Avg Prep Time (Historical): {avg_prep} minutes over {len(item_history)} orders\n"
            "- Peak Hours: 12-1 PM, 6-7 PM (usually)\n"
            "Peak hours add 30-50% to wait; each person ahead adds ~2-3 minutes.\n"
            "Respond as JSON with keys estimatedMinutes (integer), reasoning (string), isPeakHour (boolean)."
        )
        try:
            data = await self._generate_json(self._settings.GEMINI_PREDICTION_MODEL, prompt)
        except InsightUnavailable as exc:
            logger.warning("ETA prediction unavailable: %s", exc)
            multiplier = PEAK_MULTIPLIER if peak else 1
            return EtaPrediction(
                estimated_minutes=round_half_up((avg_prep + queue_length * 2.5) * multiplier),
                reasoning=f"{avg_prep}min prep{' + peak hour surge' if peak else ''}",
                is_peak_hour=peak,
            )
        model_peak = data.get("isPeakHour")
        return EtaPrediction(
            estimated_minutes=_positive_int(data.get("estimatedMinutes"))
            or round_half_up(avg_prep + queue_length * 2.5),
            reasoning=data.get("reasoning") or f"{avg_prep} min prep + queue time",
            is_peak_hour=model_peak if isinstance(model_peak, bool) else peak,
        )

    async def analyze_completion(
        self,
        food_item: str,
        estimated_minutes: int,
        actual_minutes: int,
        is_ready: bool,
    ) -> CompletionAnalysis:
        if not self.enabled:
            return CompletionAnalysis(
                should_complete=actual_minutes >= estimated_minutes,
                reasoning="Order time threshold reached.",
            )
        threshold = actual_minutes >= estimated_minutes and is_ready
        prompt = (
            "You are a smart queue management AI for a university canteen.\n"
            f"- Food Item: \"{food_item}\"\n- Estimated Wait: {estimated_minutes} minutes\n"
            f"- Actual Wait: {actual_minutes} minutes\n- Currently Ready for Pickup: {is_ready}\n"
            "Decide whether the order should be marked COMPLETE. "
            "Respond as JSON with keys shouldComplete (boolean) and reasoning (1 sentence)."
        )
        try:
            data = await self._generate_json(self._settings.GEMINI_PREDICTION_MODEL, prompt)
        except InsightUnavailable as exc:
            logger.warning("Completion analysis unavailable: %s", exc)
            return CompletionAnalysis(should_complete=threshold, reasoning="Standard completion time reached.")
        decision = data.get("shouldComplete")
        return CompletionAnalysis(
            should_complete=decision if isinstance(decision, bool) else threshold,
            reasoning=data.get("reasoning") or "Processing order completion.",
        )


def _positive_int(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return None
    return round_half_up(value)


def basic_report(
    stats: QueueStats,
    canteen_name: str,
    summary: list[OrderSummaryItem] | None,
    generated: str,
) -> str:
    rule = "-" * 60
    lines = [
        "CANTEEN DAILY REPORT",
        "=" * 60,
        "",
        f"Canteen: {canteen_name}",
        f"Generated: {generated}",
        "",
        "PERFORMANCE METRICS",
        rule,
        f"• Total Orders Today: {stats.total_orders_today}",
        f"• Average Wait Time: {stats.average_wait_time} minutes",
        f"• Active Queue Length: {stats.active_queue_length}",
        f"• Peak Hour: {stats.peak_hour}",
    ]
    if summary:
        lines += [
            "",
            "SALES PERFORMANCE",
            rule,
            f"• Best Selling Item: {summary[0].food_item} ({summary[0].count} orders)",
            "",
            "Sales Breakdown by Item:",
        ]
        lines += [
            f"  {i}. {s.food_item}: {s.count} orders, "
            f"Avg prep time: {round_half_up(s.total_prep_time / s.count)} minutes"
            for i, s in enumerate(summary, start=1)
        ]

    queue = stats.active_queue_length
    wait = stats.average_wait_time
    lines += [
        "",
        "EFFICIENCY ASSESSMENT",
        rule,
        f"• Orders Per Hour: {round_half_up(stats.total_orders_today / 8)}",
        f"• Queue Status: {'HIGH' if queue > 10 else 'MODERATE' if queue > 5 else 'LOW'}",
        f"• Average Service Time: {wait} minutes per order",
        "",
        "QUICK INSIGHTS",
        rule,
        f"• Overall Performance: {'Excellent' if wait < 10 else 'Good' if wait < 15 else 'Needs Improvement'}",
        f"• Recommended Action: {'Add more staff' if queue > 10 else 'Current staffing is adequate'}",
        f"• Next Steps: Monitor queue during {stats.peak_hour}",
    ]
    if summary:
        lines.append(f"• Focus on: Prepare more {summary[0].food_item} for next shift due to high demand")
    lines += ["", "Report Generated by SmartQueue System"]
    return "\n".join(lines)
