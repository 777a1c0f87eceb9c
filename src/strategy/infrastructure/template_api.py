"""REST client for the communication template catalog."""

from src.strategy.domain.models import Channel, TemplateDetail, TemplateSummary
from src.strategy.infrastructure.http_client import BackendClient
from src.strategy.infrastructure.strategy_api import as_list

TEMPLATES_URL = "/templates"


class TemplateClient(BackendClient):
    """Template catalog over the backend's /templates resource."""

    async def list_for_channel(self, channel: Channel) -> list[TemplateSummary]:
        data = await self._get(f"{TEMPLATES_URL}/dropdown/{Channel(channel).value}")
        return [self._parse(TemplateSummary, item) for item in as_list(data)]

    async def get_detail(self, template_id: str) -> TemplateDetail:
        data = await self._get(f"{TEMPLATES_URL}/{template_id}")
        return self._parse(TemplateDetail, data)
