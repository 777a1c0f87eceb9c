"""Protocols (interfaces) for the collaborators of the strategy engine."""

from typing import Any, Protocol, TypeVar, runtime_checkable

from src.strategy.domain.catalog import FieldCatalog
from src.strategy.domain.models import (
    Channel,
    DashboardSummary,
    ExecutionRun,
    MasterDataItem,
    Rule,
    RulePayload,
    RuleStatus,
    SimulationResult,
    TemplateDetail,
    TemplateSummary,
)

SnapshotT = TypeVar("SnapshotT", bound="PollableSnapshot", covariant=True)


@runtime_checkable
class PollableSnapshot(Protocol):
    """A status snapshot returned by a polled endpoint."""

    @property
    def is_terminal(self) -> bool:
        """Whether no further status change can happen."""
        ...


class StatusSource(Protocol[SnapshotT]):
    """Interface for anything whose status can be fetched by id."""

    async def __call__(self, resource_id: str) -> SnapshotT:
        """Fetch the current status snapshot for a resource."""
        ...


@runtime_checkable
class MasterDataSource(Protocol):
    """Interface for master-data lookups."""

    async def get_by_type(self, category: str) -> list[MasterDataItem]:
        """
        Get master-data entries of a category.

        Returns:
            Ordered list of entries, active and inactive
        """
        ...


@runtime_checkable
class FieldCatalogSource(Protocol):
    """Interface for loading the filter field catalog of an editing session."""

    async def load(self) -> FieldCatalog:
        """Load the catalog, with option lists for enumerated fields."""
        ...


@runtime_checkable
class TemplateCatalog(Protocol):
    """Interface for the communication template catalog."""

    async def list_for_channel(self, channel: Channel) -> list[TemplateSummary]:
        """List templates usable with a channel."""
        ...

    async def get_detail(self, template_id: str) -> TemplateDetail:
        """Get the full template body and variables."""
        ...


@runtime_checkable
class RuleRepository(Protocol):
    """Interface for rule persistence (remote)."""

    async def create(self, payload: RulePayload) -> Rule:
        """Create a new rule."""
        ...

    async def update(self, rule_id: str, payload: RulePayload) -> Rule:
        """Replace an existing rule entirely."""
        ...

    async def get(self, rule_id: str) -> Rule:
        """Get a rule by id."""
        ...

    async def list_all(self, status: RuleStatus | None = None) -> list[Rule]:
        """List rules, optionally by status."""
        ...

    async def delete(self, rule_id: str) -> None:
        """Delete a rule."""
        ...

    async def set_status(self, rule_id: str, status: RuleStatus) -> Rule:
        """Change a rule's status."""
        ...

    async def set_scheduler(self, rule_id: str, enabled: bool) -> Rule:
        """Enable or disable the backend scheduler for a rule."""
        ...

    async def simulate(self, rule_id: str) -> SimulationResult:
        """Preview the cases a rule would match."""
        ...

    async def get_dashboard(self) -> tuple[DashboardSummary, list[Rule]]:
        """Get dashboard counters and all rules."""
        ...


@runtime_checkable
class ExecutionApi(Protocol):
    """Interface for execution triggering and status."""

    async def execute(self, rule_id: str) -> ExecutionRun:
        """Trigger a manual run of a rule."""
        ...

    async def get_execution(self, execution_id: str) -> ExecutionRun:
        """Get the current status of a run."""
        ...

    async def get_execution_details(self, execution_id: str) -> dict[str, Any]:
        """Get the per-case breakdown of a run."""
        ...

    async def list_executions(self) -> list[ExecutionRun]:
        """List all runs."""
        ...
