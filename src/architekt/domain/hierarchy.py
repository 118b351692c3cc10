"""System hierarchy: lookups, creation, and cascade delete.

The tree is stored as forward edges only (``System.child_ids``). A
system's parent is derived from a child -> parent index built on demand,
so there is a single source of truth for every edge.

All functions mutate the given project in place; callers pass a clone.
"""

from __future__ import annotations

from architekt.domain.errors import BadRequestError, NotFoundError
from architekt.domain.ids import new_id
from architekt.domain.models import Project, System


def get_system_or_raise(project: Project, system_id: str) -> System:
    system = project.systems.get(system_id)
    if system is None:
        msg = f"System {system_id} not found in project {project.id}"
        raise NotFoundError(msg)
    return system


def build_parent_index(project: Project) -> dict[str, str]:
    """Map every child id to the id of the system listing it.

    If a child is (incorrectly) listed twice, the first parent wins.
    """
    index: dict[str, str] = {}
    for system in project.systems.values():
        for child_id in system.child_ids:
            index.setdefault(child_id, system.id)
    return index


def find_parent_id(
    project: Project,
    system_id: str,
    index: dict[str, str] | None = None,
) -> str | None:
    """Return the parent id of *system_id*, or None for the root."""
    if index is None:
        index = build_parent_index(project)
    return index.get(system_id)


def collect_descendants(project: Project, system_id: str) -> list[str]:
    """Return *system_id* and every system reachable through ``child_ids``.

    Iterative depth-first walk. Unknown child ids are skipped; the
    visited set prevents revisiting shared nodes.
    """
    visited: set[str] = set()
    ordered: list[str] = []
    stack = [system_id]

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        ordered.append(current)

        system = project.systems.get(current)
        if system is None:
            continue
        stack.extend(reversed(system.child_ids))

    return ordered


def create_system(
    project: Project,
    *,
    name: str,
    description: str = "",
    tags: list[str] | None = None,
    parent_id: str | None = None,
) -> System:
    """Create a system under *parent_id* (default: the project root).

    Raises:
        NotFoundError: The parent does not exist.
    """
    parent = get_system_or_raise(project, parent_id or project.root_system_id)

    system = System(
        id=new_id(),
        name=name,
        description=description,
        tags=list(tags or []),
        child_ids=[],
        is_root=False,
    )
    project.systems[system.id] = system
    if system.id not in parent.child_ids:
        parent.child_ids.append(system.id)
    return system


def delete_system(project: Project, system_id: str) -> list[str]:
    """Delete *system_id* and all its descendants; return the removed ids.

    Flows whose scope or steps referenced a removed system are left as-is.

    Raises:
        NotFoundError: The system does not exist.
        BadRequestError: The system is the project root.
    """
    system = get_system_or_raise(project, system_id)
    if system.is_root:
        raise BadRequestError("Root system cannot be deleted")

    removed = collect_descendants(project, system_id)

    parent_id = find_parent_id(project, system_id)
    if parent_id is not None and parent_id in project.systems:
        parent = project.systems[parent_id]
        parent.child_ids = [child for child in parent.child_ids if child != system_id]

    for descendant_id in removed:
        project.systems.pop(descendant_id, None)
    return removed
