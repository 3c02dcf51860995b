"""
Form helpers: select/checkbox options for entity forms.

Options are built as new objects from (entities, selected ids); fetched
entities are never mutated to carry a "checked" flag.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Option:
    """One selectable entity in a form."""
    id: str
    label: str
    checked: bool = False


def annotate_options(
    entities: Iterable[Any],
    selected_ids: Iterable[str | None],
    label: Callable[[Any], str],
) -> list[Option]:
    """
    Build form options with checked flags by set membership.

    Args:
        entities: all selectable entities (anything with an `id`)
        selected_ids: ids submitted or stored for the field
        label: entity -> display text

    Returns:
        one Option per entity, in input order
    """
    selected = {str(s) for s in selected_ids if s}
    return [
        Option(id=str(entity.id), label=label(entity), checked=str(entity.id) in selected)
        for entity in entities
    ]
