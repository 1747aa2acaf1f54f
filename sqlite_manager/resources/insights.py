"""Business insights memo: the memo://insights resource and the append-insight tool."""
import logging
from typing import Iterable

from mcp.types import Resource

from sqlite_manager.dispatcher import Dispatcher
from sqlite_manager.registry import AppendInsightInput

logger = logging.getLogger(__name__)

MEMO_URI = "memo://insights"
MEMO_SCHEME = "memo"
MEMO_HOST = "insights"

NO_INSIGHTS_MEMO = "No business insights have been discovered yet."

MEMO_RESOURCE = Resource(
    uri=MEMO_URI,
    name="Business Insights Memo",
    description="A living document of discovered business insights",
    mimeType="text/plain",
)


class InsightStore:
    """Ordered, append-only list of insights held in process memory."""

    def __init__(self):
        self._insights: list[str] = []

    def append(self, insight: str):
        self._insights.append(insight)

    def snapshot(self) -> tuple[str, ...]:
        return tuple(self._insights)

    def __len__(self) -> int:
        return len(self._insights)


def synthesize_memo(insights: Iterable[str]) -> str:
    insights = list(insights)
    if not insights:
        return NO_INSIGHTS_MEMO

    insights_list = "\n".join(f"- {i}" for i in insights)
    return (
        "📊 Business Intelligence Memo 📊\n\n"
        f"Key Insights Discovered:\n\n{insights_list}\n\n"
        "Summary:\n"
        f"Analysis has revealed {len(insights)} key business insights that suggest "
        "opportunities for strategic optimization and growth."
    )


def register_insight_resources(dispatcher: Dispatcher, store: InsightStore):

    @dispatcher.resource(MEMO_RESOURCE, scheme=MEMO_SCHEME, host=MEMO_HOST)
    async def get_insights() -> str:
        """Memo synthesized from every insight recorded this session."""
        memo = synthesize_memo(store.snapshot())
        logger.debug(f"Generated memo ({len(memo)} chars, {len(store)} insights)")
        return memo

    @dispatcher.tool("append-insight")
    async def append_insight(params: AppendInsightInput) -> str:
        """Record a business insight and notify subscribers that the memo changed."""
        logger.info(f"Adding new insight: {params.insight!r}")
        store.append(params.insight)
        await dispatcher.notify_resource_updated(MEMO_URI)
        logger.debug(f"Insight added successfully ({len(store)} total)")
        return "Insight added"
