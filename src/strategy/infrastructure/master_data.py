"""REST client for master-data lookups."""

from src.strategy.domain.models import MasterDataItem
from src.strategy.infrastructure.http_client import BackendClient
from src.strategy.infrastructure.strategy_api import as_list


class MasterDataClient(BackendClient):
    """Master-data source over GET /master-data?type={category}."""

    async def get_by_type(self, category: str) -> list[MasterDataItem]:
        data = await self._get("/master-data", params={"type": category})
        return [self._parse(MasterDataItem, item) for item in as_list(data)]
