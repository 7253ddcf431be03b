"""
Sector scoping.

A caller either sees everything (GlobalScope) or one sector plus the items that
belong to no sector (SectorScope). The same rule is exposed twice: `allows`
for objects already in memory and `apply_scope` for SQLAlchemy queries.
"""
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import or_


@dataclass(frozen=True)
class GlobalScope:
    def allows(self, sector_id: Optional[int]) -> bool:
        return True


@dataclass(frozen=True)
class SectorScope:
    sector_id: int

    def allows(self, sector_id: Optional[int]) -> bool:
        return sector_id is None or sector_id == self.sector_id


Scope = Union[GlobalScope, SectorScope]


def scope_for(sector_id: Optional[int]) -> Scope:
    if sector_id is None:
        return GlobalScope()
    return SectorScope(sector_id)


def narrow(scope: Scope, sector_id: Optional[int]) -> Scope:
    """
    Apply an explicit sector filter requested by the caller.

    A global caller may narrow to any sector; a sector-bound caller keeps its
    own sector whatever it asks for.
    """
    if sector_id is None or isinstance(scope, SectorScope):
        return scope
    return SectorScope(sector_id)


def apply_scope(query, column, scope: Scope):
    """Filter `query` so that only rows whose `column` the scope allows remain."""
    if isinstance(scope, SectorScope):
        return query.filter(or_(column.is_(None), column == scope.sector_id))
    return query
