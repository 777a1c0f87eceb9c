"""Dependency injection container for API layer."""

from dependency_injector import containers, providers

from src.batch.client import BatchClient
from src.batch.tracker import BatchTracker
from src.strategy.application.condition_normalizer import ConditionNormalizer
from src.strategy.application.execution_tracker import ExecutionTracker
from src.strategy.application.rule_compiler import RuleCompiler
from src.strategy.application.rule_service import RuleService
from src.strategy.application.schedule_normalizer import ScheduleNormalizer
from src.strategy.application.value_resolver import MultiValueResolver
from src.strategy.infrastructure.field_catalog import FieldCatalogLoader
from src.strategy.infrastructure.http_client import create_http_client
from src.strategy.infrastructure.master_data import MasterDataClient
from src.strategy.infrastructure.strategy_api import StrategyApiClient
from src.strategy.infrastructure.template_api import TemplateClient


class APIContainer(containers.DeclarativeContainer):
    """Dependency injection container for API layer."""

    config = providers.Configuration()

    # Shared HTTP client for all backend collaborators
    http_client = providers.Singleton(
        create_http_client,
        base_url=config.backend.base_url,
        api_token=config.backend.api_token,
        timeout=config.backend.timeout_seconds,
    )

    # Backend collaborators
    strategy_api = providers.Singleton(StrategyApiClient, client=http_client)
    master_data = providers.Singleton(MasterDataClient, client=http_client)
    templates = providers.Singleton(TemplateClient, client=http_client)
    batch_client = providers.Singleton(BatchClient, client=http_client)

    field_catalog = providers.Singleton(
        FieldCatalogLoader,
        master_data=master_data,
        ttl_seconds=config.catalog.ttl_seconds,
    )

    # Compiler pipeline
    value_resolver = providers.Singleton(MultiValueResolver)

    condition_normalizer = providers.Singleton(
        ConditionNormalizer,
        resolver=value_resolver,
        policy=config.compiler.incomplete_condition_policy,
    )

    schedule_normalizer = providers.Singleton(
        ScheduleNormalizer,
        working_days=config.schedule.working_days,
    )

    rule_compiler = providers.Singleton(
        RuleCompiler,
        condition_normalizer=condition_normalizer,
        schedule_normalizer=schedule_normalizer,
        default_priority=config.compiler.default_priority,
        default_template_name=config.compiler.default_template_name,
    )

    # Services
    rule_service = providers.Factory(
        RuleService,
        repository=strategy_api,
        compiler=rule_compiler,
        catalog_source=field_catalog,
        templates=templates,
    )

    # Trackers hold live polling tasks and must outlive a request
    execution_tracker = providers.Singleton(
        ExecutionTracker,
        api=strategy_api,
        interval_seconds=config.polling.interval_seconds,
    )

    batch_tracker = providers.Singleton(
        BatchTracker,
        client=batch_client,
        interval_seconds=config.polling.interval_seconds,
    )


# Global container instance
_container: APIContainer | None = None


def init_container(config) -> APIContainer:
    """Initialize the global container."""
    global _container
    _container = APIContainer()
    _container.config.from_dict(config)
    return _container


def get_container() -> APIContainer:
    """Get the global container instance."""
    if _container is None:
        raise RuntimeError("Container not initialized. Call init_container() first.")
    return _container


async def shutdown_container() -> None:
    """Stop all polling and close the shared HTTP client."""
    if _container is None:
        return

    await _container.execution_tracker().aclose()
    await _container.batch_tracker().aclose()
    await _container.http_client().aclose()


# FastAPI dependencies
def get_rule_service() -> RuleService:
    return get_container().rule_service()


def get_rule_compiler() -> RuleCompiler:
    return get_container().rule_compiler()


def get_field_catalog() -> FieldCatalogLoader:
    return get_container().field_catalog()


def get_templates() -> TemplateClient:
    return get_container().templates()


def get_execution_tracker() -> ExecutionTracker:
    return get_container().execution_tracker()


def get_batch_tracker() -> BatchTracker:
    return get_container().batch_tracker()
