"""Infrastructure layer for the strategy engine."""

from src.strategy.infrastructure.field_catalog import FIELD_DEFINITIONS, FieldCatalogLoader
from src.strategy.infrastructure.http_client import BackendClient, create_http_client
from src.strategy.infrastructure.logging import LoggingContext, configure_structured_logging
from src.strategy.infrastructure.master_data import MasterDataClient
from src.strategy.infrastructure.strategy_api import StrategyApiClient
from src.strategy.infrastructure.template_api import TemplateClient

__all__ = [
    "FIELD_DEFINITIONS",
    "FieldCatalogLoader",
    "BackendClient",
    "create_http_client",
    "LoggingContext",
    "configure_structured_logging",
    "MasterDataClient",
    "StrategyApiClient",
    "TemplateClient",
]
