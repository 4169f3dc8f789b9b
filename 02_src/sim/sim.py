"""SIM implementation - scripted villager traffic for manual testing."""

import asyncio
import random
from typing import Any, Protocol

import httpx

from dialogue_core.logging_config import get_logger

logger = get_logger(__name__)


# Each entry is the JSON body of POST /api/dialogue/requests.
SCENARIO: list[dict[str, Any]] = [
    {
        "speaker": 1,
        "target": 2,
        "prompt": "Good morning! How is the harvest?",
        "topic": "status",
        "summary": "Early autumn, the fields are nearly ready.",
    },
    {
        "speaker": 2,
        "target": 1,
        "prompt": "Tell Ada about the flour you sent over.",
        "topic": "trade",
        "summary": "The mill is running at full pace.",
        "events": [
            {
                "type": "trade",
                "day": 3,
                "label": "flour sacks",
                "quantity": 4,
                "reason": "processing",
                "from_npc": 2,
                "to_npc": 1,
            }
        ],
    },
    {
        "speaker": 3,
        "prompt": "What are you up to this afternoon?",
        "topic": "schedule",
        "events": [
            {"type": "schedule", "description": "Repairing the well after lunch."}
        ],
    },
    # Forces the retry path.
    {"speaker": 4, "target": 3, "prompt": "retry later", "topic": "status"},
    # Trade topic without a trade event; rejected without a provider call.
    {
        "speaker": 5,
        "prompt": "How did the market go?",
        "topic": "trade",
        "summary": "Market day just ended.",
    },
    {
        "speaker": 1,
        "target": 3,
        "prompt": "Need a hand with the well?",
        "topic": "status",
    },
]


class ISim(Protocol):
    """Generate dialogue traffic against the HTTP API."""

    async def start(self) -> None:
        """Start scripted scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


class Sim:
    """SIM posting a scripted villager scenario."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        scenario: list[dict[str, Any]] | None = None,
        delay_range: tuple[float, float] = (0.5, 2.0),
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url
        self._scenario = scenario if scenario is not None else SCENARIO
        self._delay_range = delay_range
        self._transport = transport
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None
        self.request_ids: list[int] = []

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start scripted scenario."""
        if self._running:
            return

        self._running = True
        self.request_ids = []
        self._client = httpx.AsyncClient(transport=self._transport)

        # Start background task
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def wait(self) -> None:
        """Wait for the scenario to finish posting."""
        if self._task:
            await self._task

    async def _run_scenario(self) -> None:
        """Run scripted scenario."""
        logger.info("SIM: posting %s dialogue request(s)", len(self._scenario))
        try:
            for body in self._scenario:
                if not self._running:
                    break

                await self._send_request(body)
                low, high = self._delay_range
                await asyncio.sleep(random.uniform(low, high))

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            logger.info("SIM: scenario finished (%s accepted)", len(self.request_ids))

    async def _send_request(self, body: dict[str, Any]) -> None:
        """Send a dialogue request via HTTP API."""
        if not self._client:
            return

        try:
            response = await self._client.post(
                f"{self._api_url}/api/dialogue/requests",
                json=body,
                timeout=10.0,
            )

            if response.status_code == 200:
                request_id = response.json()["request_id"]
                self.request_ids.append(request_id)
                logger.info(
                    "SIM: NPC %s -> request %s (%s)",
                    body["speaker"],
                    request_id,
                    body["prompt"],
                )
            else:
                logger.error(
                    "SIM: Error posting dialogue request: %s",
                    response.status_code,
                )

        except httpx.HTTPError as e:
            logger.error("SIM: Failed to post dialogue request: %s", e)
