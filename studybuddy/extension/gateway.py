"""
studybuddy/extension/gateway.py

Client gateway: the extension's HTTP client for the backend.

Both operations post the problem to ``POST /api/v1/analyze-question`` and
reshape the answer. Failures never raise: they come back as a result with
``success=False`` and an ``error`` the popup can show.

The backend has one response shape, the success envelope with a
``data.hints`` array. ``request_next_hint`` picks the entry at the
requested index and derives ``hints_remaining`` from the array length.

Rules:
    - One request per call. No retries.
    - ``Authorization: Bearer`` is sent only when an API key is configured.
"""

from dataclasses import dataclass

import httpx

from studybuddy.core.logging import get_logger
from studybuddy.extension.models import ProblemRecord
from studybuddy.extension.storage import KeyValueStore

logger = get_logger(__name__)

ANALYZE_PATH = "/api/v1/analyze-question"
HEALTH_PATH = "/health"
DEFAULT_API_URL = "http://localhost:8000"
# The backend's own LLM call may take up to 30 s.
REQUEST_TIMEOUT_SECONDS = 60.0

API_URL_KEY = "apiUrl"
API_KEY_KEY = "apiKey"


@dataclass
class GatewayConfig:
    api_url: str = DEFAULT_API_URL
    api_key: str | None = None

    @classmethod
    def load(cls, store: KeyValueStore) -> "GatewayConfig":
        return cls(
            api_url=store.get(API_URL_KEY) or DEFAULT_API_URL,
            api_key=store.get(API_KEY_KEY) or None,
        )

    def save(self, store: KeyValueStore) -> None:
        store.set(API_URL_KEY, self.api_url)
        if self.api_key:
            store.set(API_KEY_KEY, self.api_key)
        else:
            store.remove(API_KEY_KEY)


@dataclass(frozen=True)
class HintResponse:
    success: bool
    hint: str | None = None
    hints_remaining: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class PseudoCodeResponse:
    success: bool
    pseudo_code: str | None = None
    error: str | None = None


class GatewayError(Exception):
    """Raised internally for a non-success HTTP status."""

    pass


class ClientGateway:
    def __init__(
        self,
        config: GatewayConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def update_config(self, store: KeyValueStore, api_url: str, api_key: str | None = None) -> None:
        """Switch backends and persist the choice for the next browser start."""
        self.config = GatewayConfig(api_url=api_url, api_key=api_key or None)
        self.config.save(store)

    def _url(self, path: str) -> str:
        return f"{self.config.api_url.rstrip('/')}{path}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS, transport=self._transport)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    @staticmethod
    def _payload(problem: ProblemRecord) -> dict:
        payload = {"questionText": problem.question_text, "platform": problem.platform.value}
        if problem.difficulty:
            payload["difficulty"] = problem.difficulty
        return payload

    async def _analyze(self, problem: ProblemRecord) -> dict:
        """Post the problem and return the envelope's ``data`` object."""
        async with self._client() as client:
            response = await client.post(
                self._url(ANALYZE_PATH),
                json=self._payload(problem),
                headers=self._headers(),
            )
        if not response.is_success:
            raise GatewayError(
                f"API request failed: {response.status_code} {response.reason_phrase}"
            )
        body = response.json()
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise GatewayError("Malformed response: expected a data object")
        return body["data"]

    async def request_next_hint(self, problem: ProblemRecord, hint_index: int) -> HintResponse:
        try:
            data = await self._analyze(problem)
        except (GatewayError, httpx.HTTPError, ValueError) as exc:
            logger.warning("hint_request_failed", hint_index=hint_index, error=str(exc))
            return HintResponse(success=False, error=str(exc) or "Failed to get hint")

        hints = data.get("hints")
        if not isinstance(hints, list):
            return HintResponse(success=False, error="Malformed response: missing hints")
        if not 0 <= hint_index < len(hints):
            return HintResponse(success=False, hints_remaining=0, error="No more hints available")

        return HintResponse(
            success=True,
            hint=hints[hint_index],
            hints_remaining=max(0, len(hints) - hint_index - 1),
        )

    async def request_pseudo_code(self, problem: ProblemRecord) -> PseudoCodeResponse:
        try:
            data = await self._analyze(problem)
        except (GatewayError, httpx.HTTPError, ValueError) as exc:
            logger.warning("pseudo_code_request_failed", error=str(exc))
            return PseudoCodeResponse(success=False, error=str(exc) or "Failed to get pseudo code")

        pseudo_code = data.get("pseudoCode")
        if not isinstance(pseudo_code, str) or not pseudo_code:
            return PseudoCodeResponse(success=False, error="Malformed response: missing pseudoCode")
        return PseudoCodeResponse(success=True, pseudo_code=pseudo_code)

    async def test_connection(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(self._url(HEALTH_PATH))
            return response.is_success
        except httpx.HTTPError:
            return False
