"""Role hierarchy resolution with cycle detection.

Computes, for every role of a guard, its inherited permissions and its
ancestors-first inheritance chain. Resolution is a pure function of the full
role collection: any cycle fails the whole pass and no partial result is
returned. Parent names that match no role are tolerated and contribute
nothing, but stay visible in ``inherits_from``.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ....core.exceptions import CircularRoleInheritanceError
from ..entities.role import ResolvedRole, RoleRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Expansion:
    """Completed result for one role, memoised once its subtree is done."""

    inherited: Tuple[str, ...]
    chain: Tuple[str, ...]


class RoleHierarchyResolver:
    """Resolves multi-parent role inheritance.

    Traversal is an explicit-stack depth-first walk. Cycle detection uses the
    names on the current path only; completed roles are memoised per pass and
    keyed by guard and name.
    """

    def resolve(self, roles: Iterable[RoleRecord]) -> List[ResolvedRole]:
        """Resolve every role, returned in input order.

        Raises:
            CircularRoleInheritanceError: if the parent graph of any guard has a cycle
        """
        records = list(roles)
        resolved = self.resolve_index(records)
        return [resolved[record.key] for record in records]

    def resolve_index(self, roles: Iterable[RoleRecord]) -> Dict[Tuple[str, str], ResolvedRole]:
        """Resolve every role and index the results by ``(name, guard)``."""
        resolved: Dict[Tuple[str, str], ResolvedRole] = {}

        for guard, index in self._group_by_guard(roles).items():
            memo: Dict[str, _Expansion] = {}
            for name in index:
                self._expand(name, index, memo, guard)

            for name, record in index.items():
                expansion = memo[name]
                resolved[(name, guard)] = ResolvedRole(
                    name=name,
                    guard=guard,
                    direct_permissions=record.permissions,
                    inherited_permissions=expansion.inherited,
                    inherits_from=record.parent_names,
                    full_chain=expansion.chain,
                    feature=record.feature,
                )

        return resolved

    def resolve_role(
        self,
        name: str,
        roles: Iterable[RoleRecord],
        guard: Optional[str] = None
    ) -> Optional[ResolvedRole]:
        """Resolve one role against the full collection of its guard."""
        for resolved in self.resolve(roles):
            if resolved.name == name and (guard is None or resolved.guard == guard):
                return resolved
        return None

    def inheritance_chain(
        self,
        name: str,
        roles: Iterable[RoleRecord],
        guard: Optional[str] = None
    ) -> List[str]:
        """Ancestors-first chain ending with the role itself, empty if unknown."""
        resolved = self.resolve_role(name, roles, guard)
        return list(resolved.full_chain) if resolved else []

    def validate(self, roles: Iterable[RoleRecord]) -> None:
        """Raise CircularRoleInheritanceError if the collection has a cycle."""
        self.resolve_index(roles)

    def find_cycle(self, roles: Iterable[RoleRecord]) -> Optional[List[str]]:
        """Return the first cycle found, or None for an acyclic collection."""
        try:
            self.validate(roles)
        except CircularRoleInheritanceError as e:
            return e.cycle
        return None

    @staticmethod
    def _group_by_guard(roles: Iterable[RoleRecord]) -> Dict[str, Dict[str, RoleRecord]]:
        grouped: Dict[str, Dict[str, RoleRecord]] = {}
        for record in roles:
            # First definition of a name wins within a guard
            grouped.setdefault(record.guard, {}).setdefault(record.name, record)
        return grouped

    def _expand(
        self,
        root: str,
        index: Dict[str, RoleRecord],
        memo: Dict[str, _Expansion],
        guard: str
    ) -> None:
        if root in memo:
            return

        stack: List[Tuple[str, int]] = [(root, 0)]
        path: List[str] = [root]
        on_path = {root}

        while stack:
            name, position = stack[-1]
            record = index[name]

            if position < len(record.parent_names):
                stack[-1] = (name, position + 1)
                parent = record.parent_names[position]

                if parent in on_path:
                    cycle = path[path.index(parent):] + [parent]
                    logger.error(f"Circular role inheritance in guard '{guard}': {' -> '.join(cycle)}")
                    raise CircularRoleInheritanceError(cycle, guard)

                if parent in memo or parent not in index:
                    continue

                stack.append((parent, 0))
                path.append(parent)
                on_path.add(parent)
            else:
                stack.pop()
                path.pop()
                on_path.discard(name)
                memo[name] = self._combine(record, index, memo)

    @staticmethod
    def _combine(
        record: RoleRecord,
        index: Dict[str, RoleRecord],
        memo: Dict[str, _Expansion]
    ) -> _Expansion:
        inherited: List[str] = []
        chain: List[str] = []

        for parent_name in record.parent_names:
            parent = index.get(parent_name)
            if parent is None:
                continue
            inherited.extend(parent.permissions)
            inherited.extend(memo[parent_name].inherited)
            chain.extend(memo[parent_name].chain)

        direct = set(record.permissions)
        inherited_unique = tuple(p for p in dict.fromkeys(inherited) if p not in direct)
        chain_unique = tuple(dict.fromkeys(chain)) + (record.name,)

        return _Expansion(inherited=inherited_unique, chain=chain_unique)
