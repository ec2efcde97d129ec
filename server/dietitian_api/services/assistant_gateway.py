"""AI recommendation gateway client.

Builds the Ayurvedic nutritionist prompts, forwards a streaming chat
completion request to the AI gateway and either relays the raw event
stream or collects it into the final recommendation text.
"""
import json
import logging
from typing import AsyncIterator, Optional

import httpx

from ayurveda import ChatStreamDecoder

from ..config import get_settings
from ..models.assistant import AssistantRequest

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add credits to continue."
SERVICE_ERROR_MESSAGE = "AI service error"

MEAL_PLANNING_SYSTEM_PROMPT = """You are an expert Ayurvedic nutritionist and meal planning assistant. You understand the six tastes (Rasa): sweet, sour, salty, bitter, pungent, astringent. You know about Virya (hot/cold potency), Vipaka (post-digestive effect), and the three Doshas (Vata, Pitta, Kapha).

Your role is to suggest balanced meal combinations that:
1. Include all six tastes in proper proportions
2. Balance the doshas appropriately
3. Consider digestibility and food combinations
4. Follow Ayurvedic food combining principles (avoid incompatible combinations)

Always provide practical, actionable meal suggestions with specific foods."""

DOSHA_SYSTEM_PROMPT = """You are an expert Ayurvedic nutritionist specializing in dosha-balancing dietary recommendations. You have deep knowledge of:
- The three doshas: Vata (air/space), Pitta (fire/water), Kapha (earth/water)
- How different foods affect each dosha (increase or decrease)
- The six tastes and their dosha effects
- Food qualities (hot/cold, light/heavy, dry/oily)

Provide specific, practical food recommendations that will help balance the specified dosha."""


class AssistantGatewayError(Exception):
    """Upstream failure with the status and message to show the user."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def build_prompts(request: AssistantRequest, max_foods: int = 30) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for a recommendation request."""
    foods_json = json.dumps(request.available_foods[:max_foods], indent=2)

    if request.type == "meal_planning":
        meal = (request.meal_type or "full day").replace("_", " ")
        lines = [f"Create a balanced {meal} meal plan based on Ayurvedic principles."]
        if request.dosha:
            lines.append(
                f"The person has a {request.dosha} constitution and needs foods that balance this dosha."
            )
        if request.preferences:
            lines.append(f"Dietary preferences: {request.preferences}")
        lines += [
            "",
            "Available foods in our database:",
            foods_json,
            "",
            "Please suggest specific meal combinations using these foods where possible, "
            "explaining the Ayurvedic reasoning behind each choice. Format your response with "
            "clear meal sections and explain which tastes and doshas are being balanced.",
        ]
        return MEAL_PLANNING_SYSTEM_PROMPT, "\n".join(lines)

    dosha = request.dosha
    user_prompt = f"""Recommend foods to balance {dosha} dosha.

Here are foods from our database with their dosha effects:
{foods_json}

Please:
1. Identify which foods from the list are best for balancing {dosha}
2. Explain why these foods help balance {dosha}
3. Suggest which foods to avoid or limit
4. Provide meal timing recommendations for this dosha
5. Include any lifestyle tips related to diet for {dosha} balance"""
    return DOSHA_SYSTEM_PROMPT, user_prompt


def _error_for_status(status_code: int) -> AssistantGatewayError:
    if status_code == 429:
        return AssistantGatewayError(429, RATE_LIMIT_MESSAGE)
    if status_code == 402:
        return AssistantGatewayError(402, CREDITS_EXHAUSTED_MESSAGE)
    return AssistantGatewayError(500, SERVICE_ERROR_MESSAGE)


class UpstreamStream:
    """
    Open upstream response body together with the client that owns it.

    ``aclose()`` releases both whether or not iteration ever started, and
    is safe to call more than once.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self._response = response
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class AssistantGateway:
    """
    Streaming client for the chat completions gateway.

    A new httpx.AsyncClient is opened per request and closed when the
    stream is exhausted or abandoned by the caller.
    """

    def __init__(self, settings=None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self.transport = transport

    def _payload(self, request: AssistantRequest) -> dict:
        system_prompt, user_prompt = build_prompts(request, self.settings.ai_max_prompt_foods)
        return {
            "model": self.settings.ai_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": True,
        }

    async def _open(self, request: AssistantRequest) -> tuple[httpx.AsyncClient, httpx.Response]:
        if not self.settings.ai_gateway_api_key:
            raise AssistantGatewayError(500, "AI gateway API key is not configured")

        logger.info(f"[ASSISTANT] Processing {request.type} request for dosha: {request.dosha}")

        client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.ai_timeout_seconds),
            transport=self.transport,
        )
        try:
            response = await client.send(
                client.build_request(
                    "POST",
                    self.settings.ai_gateway_url,
                    headers={"Authorization": f"Bearer {self.settings.ai_gateway_api_key}"},
                    json=self._payload(request),
                ),
                stream=True,
            )
        except httpx.TimeoutException as e:
            await client.aclose()
            raise AssistantGatewayError(504, "AI gateway request timed out") from e
        except httpx.HTTPError as e:
            await client.aclose()
            logger.error(f"[ASSISTANT] Cannot reach AI gateway: {e}")
            raise AssistantGatewayError(503, "Cannot connect to AI gateway") from e

        if not response.is_success:
            error_text = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            await client.aclose()
            logger.error(f"[ASSISTANT] AI gateway error: {response.status_code} {error_text[:500]}")
            raise _error_for_status(response.status_code)

        return client, response

    async def stream(self, request: AssistantRequest) -> "UpstreamStream":
        """
        Open the upstream stream and return its body.

        Status errors are raised here, before any byte is relayed.
        """
        client, response = await self._open(request)
        return UpstreamStream(client, response)

    async def collect(self, request: AssistantRequest) -> str:
        """Read the whole stream and return the reconstructed text."""
        client, response = await self._open(request)
        decoder = ChatStreamDecoder()
        try:
            async for chunk in response.aiter_bytes():
                decoder.feed(chunk)
                if decoder.done:
                    break
            decoder.finish()
        finally:
            await response.aclose()
            await client.aclose()

        if decoder.malformed_lines:
            logger.debug(f"[ASSISTANT] Skipped {decoder.malformed_lines} malformed stream lines")
        return decoder.text


# Singleton instance
assistant_gateway = AssistantGateway()


def get_assistant_gateway() -> AssistantGateway:
    """FastAPI dependency returning the gateway client."""
    return assistant_gateway
