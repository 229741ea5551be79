"""
SiteCascade Implicit Sequencing

Standard construction order used to infer soft predecessors for
phases that declare no dependencies of their own:

    Foundation -> Skeleton -> Plumbing / Electrical / Systems -> Finishes

Categories that share an order index run in parallel. Matching is a
case-insensitive substring test of each keyword against the phase
name, first category in table order wins.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SequenceCategory:
    """A named step in the standard construction order."""
    name: str
    order: int
    keywords: Tuple[str, ...] = ()

    def matches(self, phase_name: str) -> bool:
        text = phase_name.lower()
        return any(keyword in text for keyword in self.keywords)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "order": self.order, "keywords": list(self.keywords)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SequenceCategory":
        name = str(data["name"])
        keywords = data.get("keywords") or [name]
        return cls(
            name=name,
            order=int(data["order"]),
            keywords=tuple(str(k).lower() for k in keywords if str(k).strip()),
        )


DEFAULT_CATEGORIES: Tuple[SequenceCategory, ...] = (
    SequenceCategory(
        "Foundation", 0,
        ("foundation", "excavation", "earthwork", "piling", "site preparation"),
    ),
    SequenceCategory(
        "Skeleton", 1,
        ("skeleton", "structure", "structural", "frame", "framing", "concrete"),
    ),
    SequenceCategory("Plumbing", 2, ("plumbing", "drainage", "sewage")),
    SequenceCategory("Electrical", 2, ("electrical", "electric", "wiring")),
    SequenceCategory("Systems", 2, ("systems", "hvac", "utilities")),
    SequenceCategory(
        "Finishes", 3,
        ("finish", "painting", "tiling", "flooring", "plaster"),
    ),
)


class CategoryTable:
    """
    Ordered table of sequence categories.

    Table order decides which category a name matches; the order
    index decides sequencing.
    """

    def __init__(self, categories: Optional[Iterable[SequenceCategory]] = None):
        self._categories: Tuple[SequenceCategory, ...] = tuple(
            DEFAULT_CATEGORIES if categories is None else categories
        )

    @classmethod
    def default(cls) -> "CategoryTable":
        return cls(DEFAULT_CATEGORIES)

    @classmethod
    def from_config(cls, entries: Sequence[Dict[str, Any]]) -> "CategoryTable":
        """Build from config dicts; an empty list yields the default table."""
        if not entries:
            return cls.default()
        return cls(SequenceCategory.from_dict(entry) for entry in entries)

    @property
    def categories(self) -> Tuple[SequenceCategory, ...]:
        return self._categories

    def match(self, phase_name: str) -> Optional[SequenceCategory]:
        """Category for a phase name, or None if nothing matches."""
        if not phase_name:
            return None
        for category in self._categories:
            if category.matches(phase_name):
                return category
        return None

    def order_of(self, phase_name: str) -> Optional[int]:
        category = self.match(phase_name)
        return category.order if category else None

    def to_list(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._categories]

    def __len__(self) -> int:
        return len(self._categories)


def nearest_earlier_order(order: int, present_orders: Iterable[int]) -> Optional[int]:
    """Largest order index strictly below `order` among those present."""
    earlier = [o for o in present_orders if o < order]
    return max(earlier) if earlier else None
