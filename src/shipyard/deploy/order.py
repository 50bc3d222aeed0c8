"""Deployment order resolution.

Turns ``name`` / ``name/priority`` tokens (plus "deploy all" semantics) into
an ordered list of deployment groups. Workloads in a lower-priority group are
deployed before workloads in a higher one; workloads without a priority are
deployed last. No I/O happens here.

Public API (the "studs"):
    WorkloadReference: A workload name with an optional priority
    DeploymentGroup: Workloads sharing one priority
    DeploymentPlan: Ordered deployment groups
    parse_workload_reference: Parse a single token
    resolve_deployment_plan: Build the plan for a run
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable

from pydantic import BaseModel, Field

from ..errors import InvalidWorkloadNameError

# Marker for "no priority given". It is negative so it can never collide with
# a user-supplied priority; the plan moves its group last explicitly.
UNSPECIFIED_PRIORITY = -1


class WorkloadReference(BaseModel):
    """A workload name with an optional deployment priority."""

    name: str
    priority: int = UNSPECIFIED_PRIORITY

    @property
    def has_priority(self) -> bool:
        return self.priority != UNSPECIFIED_PRIORITY


class DeploymentGroup(BaseModel):
    """Workloads that share a priority and may deploy in any order."""

    priority: int = Field(..., description="Group priority, or UNSPECIFIED_PRIORITY")
    names: list[str] = Field(default_factory=list, description="Workload names in the group")

    @property
    def is_unspecified(self) -> bool:
        return self.priority == UNSPECIFIED_PRIORITY


class DeploymentPlan(BaseModel):
    """Deployment groups in the order they must be deployed."""

    groups: list[DeploymentGroup] = Field(default_factory=list)

    @property
    def workloads(self) -> list[str]:
        """All workload names in deployment order."""
        return [name for group in self.groups for name in group.names]

    def as_lists(self) -> list[list[str]]:
        return [list(group.names) for group in self.groups]

    def __len__(self) -> int:
        return sum(len(group.names) for group in self.groups)


def parse_workload_reference(token: str) -> WorkloadReference:
    """Parse ``name`` or ``name/priority``.

    Raises:
        InvalidWorkloadNameError: If the token has more than one ``/``, an
            empty name, or a priority that is not a non-negative integer
    """
    parts = token.split("/")
    if len(parts) > 2:
        raise InvalidWorkloadNameError(token, "expected <name> or <name>/<priority>")

    name = parts[0].strip()
    if not name:
        raise InvalidWorkloadNameError(token, "workload name must not be empty")

    if len(parts) == 1:
        return WorkloadReference(name=name)

    raw_priority = parts[1].strip()
    if not (raw_priority.isascii() and raw_priority.isdigit()):
        raise InvalidWorkloadNameError(token, "priority must be a non-negative integer")
    return WorkloadReference(name=name, priority=int(raw_priority))


def parse_workload_references(tokens: Iterable[str]) -> list[WorkloadReference]:
    """Parse all tokens, collapsing repeated names.

    A name given twice keeps its explicit priority. Two different explicit
    priorities for the same name are an input error.
    """
    refs: dict[str, WorkloadReference] = {}
    for token in tokens:
        ref = parse_workload_reference(token)
        existing = refs.get(ref.name)
        if existing is None:
            refs[ref.name] = ref
            continue
        if existing.has_priority and ref.has_priority and existing.priority != ref.priority:
            raise InvalidWorkloadNameError(
                token,
                f"workload {ref.name} was already given priority {existing.priority}",
            )
        if ref.has_priority and not existing.has_priority:
            refs[ref.name] = ref
    return list(refs.values())


def resolve_deployment_plan(
    names: Iterable[str],
    deploy_all: bool = False,
    all_workloads: Iterable[str] = (),
    initialized_workloads: Iterable[str] = (),
    include_uninitialized_on_all: bool = True,
) -> DeploymentPlan:
    """Resolve raw name tokens into an ordered deployment plan.

    Args:
        names: Tokens of the form ``name`` or ``name/priority``
        deploy_all: Also deploy every workload in ``all_workloads``
        all_workloads: Every workload in the workspace
        initialized_workloads: Workspace workloads already registered
        include_uninitialized_on_all: Include unregistered workloads when
            ``deploy_all`` is set

    Returns:
        DeploymentPlan with groups in ascending priority and the unprioritized
        group last

    Raises:
        InvalidWorkloadNameError: If any token is malformed
    """
    refs = parse_workload_references(names)

    by_priority: dict[int, set[str]] = {}
    for ref in refs:
        by_priority.setdefault(ref.priority, set()).add(ref.name)

    if deploy_all:
        named = {ref.name for ref in refs}
        remainder = set(all_workloads) - named
        if not include_uninitialized_on_all:
            remainder &= set(initialized_workloads)
        if remainder:
            by_priority.setdefault(UNSPECIFIED_PRIORITY, set()).update(remainder)

    heap = list(by_priority)
    heapq.heapify(heap)
    groups: list[DeploymentGroup] = []
    while heap:
        priority = heapq.heappop(heap)
        groups.append(DeploymentGroup(priority=priority, names=sorted(by_priority[priority])))

    for i, group in enumerate(groups):
        if group.is_unspecified:
            groups.append(groups.pop(i))
            break

    return DeploymentPlan(groups=groups)


__all__ = [
    "UNSPECIFIED_PRIORITY",
    "WorkloadReference",
    "DeploymentGroup",
    "DeploymentPlan",
    "parse_workload_reference",
    "parse_workload_references",
    "resolve_deployment_plan",
]
