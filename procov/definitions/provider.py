"""
Graph snapshot providers.

A provider turns a deployed definition into the GraphSnapshot that serves
as its coverage denominator. Fetching may involve parsing a resource, so
CachingSnapshotProvider makes sure it happens once per deployed id.
"""

from collections.abc import Callable, Iterable
from typing import Protocol, runtime_checkable

from procov.definitions.models import (
    DecisionResource,
    DefinitionInfo,
    DefinitionType,
    GraphSnapshot,
    ProcessResource,
)
from procov.errors import DefinitionLoadError
from procov.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class GraphSnapshotProvider(Protocol):
    """Protocol for anything that can supply declared-element snapshots."""

    def process_snapshot(self, info: DefinitionInfo) -> GraphSnapshot:
        """Return the snapshot of a process definition."""
        ...

    def decision_snapshot(self, info: DefinitionInfo) -> GraphSnapshot:
        """Return the snapshot of a decision definition."""
        ...


class ModelSnapshotProvider:
    """
    Build snapshots from parsed process and decision resources.

    Filtering rules:
    - flow nodes come only from the executable process whose id is the key
    - sequence flows count only when their source node is a declared node
    - rules come only from the decision whose id is the key, never from
      sibling decisions of the same requirements graph
    """

    def __init__(self, resources: Iterable[ProcessResource | DecisionResource] = ()):
        self._processes: dict[str, ProcessResource] = {}
        self._decisions: dict[str, DecisionResource] = {}
        for resource in resources:
            self.add_resource(resource)

    def add_resource(self, resource: ProcessResource | DecisionResource) -> None:
        """Register a resource by its name. Later resources replace earlier ones."""
        if isinstance(resource, ProcessResource):
            self._processes[resource.resource_name] = resource
        else:
            self._decisions[resource.resource_name] = resource

    def definitions(self) -> list[DefinitionInfo]:
        """All definitions declared by the registered resources."""
        infos: list[DefinitionInfo] = []
        for process_resource in self._processes.values():
            infos.extend(process_resource.definitions())
        for decision_resource in self._decisions.values():
            infos.extend(decision_resource.definitions())
        return infos

    def process_snapshot(self, info: DefinitionInfo) -> GraphSnapshot:
        resource = self._processes.get(info.resource_name)
        if resource is None:
            msg = f"Process resource not found: {info.resource_name}"
            raise DefinitionLoadError(msg)

        process = resource.get_process(info.key)
        if process is None:
            msg = f"Process '{info.key}' not declared in {info.resource_name}"
            raise DefinitionLoadError(msg)

        if not process.executable:
            return GraphSnapshot(info=info)

        flow_nodes = frozenset(node.id for node in process.flow_nodes)
        sequence_flows = frozenset(
            flow.id for flow in process.sequence_flows if flow.source in flow_nodes
        )
        return GraphSnapshot(info=info, flow_nodes=flow_nodes, sequence_flows=sequence_flows)

    def decision_snapshot(self, info: DefinitionInfo) -> GraphSnapshot:
        resource = self._decisions.get(info.resource_name)
        if resource is None:
            msg = f"Decision resource not found: {info.resource_name}"
            raise DefinitionLoadError(msg)

        decision = resource.get_decision(info.key)
        if decision is None:
            msg = f"Decision '{info.key}' not declared in {info.resource_name}"
            raise DefinitionLoadError(msg)

        return GraphSnapshot(info=info, decision_rules=frozenset(decision.rules))


class CachingSnapshotProvider:
    """Wrap a provider so each deployed definition is fetched only once."""

    def __init__(self, delegate: GraphSnapshotProvider):
        self.delegate = delegate
        self._cache: dict[tuple[DefinitionType, str], GraphSnapshot] = {}

    def process_snapshot(self, info: DefinitionInfo) -> GraphSnapshot:
        return self._get(info, self.delegate.process_snapshot)

    def decision_snapshot(self, info: DefinitionInfo) -> GraphSnapshot:
        return self._get(info, self.delegate.decision_snapshot)

    def _get(
        self, info: DefinitionInfo, fetch: Callable[[DefinitionInfo], GraphSnapshot]
    ) -> GraphSnapshot:
        cache_key = (info.definition_type, info.deployed_id)
        snapshot = self._cache.get(cache_key)
        if snapshot is None:
            logger.debug(
                "Fetching graph snapshot",
                definition_key=info.key,
                resource_name=info.resource_name,
            )
            snapshot = fetch(info)
            self._cache[cache_key] = snapshot
        return snapshot

    def clear(self) -> None:
        """Drop all cached snapshots."""
        self._cache.clear()
