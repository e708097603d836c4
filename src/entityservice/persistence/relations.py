"""
Relation Change Records

Store-ready description of how the links of one relation attribute must
change. The relation resolver builds these from caller directives once
every referenced entity is known to exist; stores apply them when they
write the entity.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class RelationRef:
    """
    Reference to one target entity.

    ``position`` optionally places a connected entity inside an ordered
    to-many relation: ``{"before": id}``, ``{"after": id}``,
    ``{"start": True}`` or ``{"end": True}``.
    """
    id: Any
    position: Optional[Dict[str, Any]] = None

    @classmethod
    def from_input(cls, value: Any) -> 'RelationRef':
        """Build a reference from a bare id or a ``{"id": ..., "position": ...}`` mapping"""
        if isinstance(value, RelationRef):
            return value
        if isinstance(value, dict):
            if "id" not in value:
                raise ValueError(f"Relation reference is missing an id: {value!r}")
            return cls(id=value["id"], position=value.get("position"))
        return cls(id=value)


@dataclass
class RelationChange:
    """Resolved relation directive"""
    connect: List[RelationRef] = field(default_factory=list)
    disconnect: List[RelationRef] = field(default_factory=list)
    set: Optional[List[RelationRef]] = None

    def referenced_ids(self) -> List[Any]:
        """Unique ids that must exist in the target store, in input order"""
        refs = list(self.set or []) + list(self.connect)
        return list(dict.fromkeys(ref.id for ref in refs))

    def apply(self, current: List[Any]) -> List[Any]:
        """
        Compute the new list of linked ids.

        ``set`` replaces the links, then ``disconnect`` removes ids and
        ``connect`` (re)inserts ids honoring their position.
        Each id is linked at most once.

        Raises:
            ValueError: If a position anchor is not linked
        """
        if self.set is not None:
            links = list(dict.fromkeys(ref.id for ref in self.set))
        else:
            links = list(current)
        removed = {ref.id for ref in self.disconnect}
        links = [link for link in links if link not in removed]

        for ref in self.connect:
            if ref.id in links:
                links.remove(ref.id)
            position = ref.position or {}
            if "before" in position or "after" in position:
                anchor = position.get("before", position.get("after"))
                if anchor not in links:
                    raise ValueError(f"Cannot position relation {ref.id!r}: {anchor!r} is not connected")
                index = links.index(anchor)
                links.insert(index if "before" in position else index + 1, ref.id)
            elif position.get("start"):
                links.insert(0, ref.id)
            else:
                links.append(ref.id)
        return links
