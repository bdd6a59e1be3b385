"""Build the section hierarchy of a test from its flat section list."""
from __future__ import annotations

import logging
from dataclasses import fields
from typing import Iterable

from exam_runner.errors import SectionCycleError
from exam_runner.models import HierarchicalSection, Section

logger = logging.getLogger(__name__)

_SECTION_FIELDS = tuple(f.name for f in fields(Section))


def _clone(section: Section) -> HierarchicalSection:
    values = {name: getattr(section, name) for name in _SECTION_FIELDS}
    return HierarchicalSection(**values, children=[])


def _sort_key(section: Section) -> int:
    return section.section_number


def _find_cycles(nodes: dict[str, HierarchicalSection]) -> list[str]:
    """Return ids of sections whose ancestor chain loops back on itself."""
    cyclic: set[str] = set()
    settled: set[str] = set()

    for start_id in nodes:
        chain: list[str] = []
        on_chain: set[str] = set()
        current: str | None = start_id
        while current is not None and current in nodes and current not in settled:
            if current in on_chain:
                cyclic.update(chain[chain.index(current):])
                break
            chain.append(current)
            on_chain.add(current)
            current = nodes[current].parent_section_id
        settled.update(chain)

    return sorted(cyclic)


def _assign_display_numbers(
    siblings: list[HierarchicalSection], prefix: str = ""
) -> None:
    for position, node in enumerate(siblings, start=1):
        node.display_number = f"{prefix}{position}"
        _assign_display_numbers(node.children, f"{node.display_number}.")


def _sort_siblings(siblings: list[HierarchicalSection]) -> None:
    siblings.sort(key=_sort_key)
    for node in siblings:
        _sort_siblings(node.children)


def build_section_tree(sections: Iterable[Section]) -> list[HierarchicalSection]:
    """
    Convert a flat list of sections into ordered root sections.

    Sections pointing to an unknown parent are logged and kept as roots.
    Raises SectionCycleError when parent links form a loop, since sections
    on a loop can never be reached from a root.
    """
    nodes: dict[str, HierarchicalSection] = {}
    for section in sections:
        nodes[section.id] = _clone(section)

    cyclic = _find_cycles(nodes)
    if cyclic:
        logger.error("Section cycle detected: %s", ", ".join(cyclic))
        raise SectionCycleError(cyclic)

    roots: list[HierarchicalSection] = []
    for node in nodes.values():
        parent_id = node.parent_section_id
        if parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(parent_id)
        if parent is None:
            logger.warning(
                "Section %s references missing parent %s, treating it as a root",
                node.id,
                parent_id,
            )
            roots.append(node)
            continue
        parent.children.append(node)

    _sort_siblings(roots)
    _assign_display_numbers(roots)
    return roots


def flatten_sections(
    roots: Iterable[HierarchicalSection],
) -> list[HierarchicalSection]:
    """Depth-first order: each section is followed by its children."""
    ordered: list[HierarchicalSection] = []

    def visit(siblings: Iterable[HierarchicalSection]) -> None:
        for node in sorted(siblings, key=_sort_key):
            ordered.append(node)
            visit(node.children)

    visit(roots)
    return ordered


def find_orphans(sections: Iterable[Section]) -> list[Section]:
    """Sections whose parent id does not resolve within the same list."""
    section_list = list(sections)
    known = {section.id for section in section_list}
    return [
        section
        for section in section_list
        if section.parent_section_id and section.parent_section_id not in known
    ]
