"""
Table dependency ordering for SQL Schema Generator.

Computes a creation order in which every referenced table is placed before
the tables referencing it. Reference cycles are allowed by the schema model
(two tables may reference each other); their foreign keys carry no ordering
information and are left to the deferred foreign key phase of the DDL
synthesizer.
"""

import logging
from typing import Dict, Iterable, List, Set

from sql_schema_generator.domain.models import Table
from sql_schema_generator.exceptions import (
    DependencyCycleError,
    DependencyResolutionError,
    SchemaDefinitionError,
)

logger = logging.getLogger(__name__)


def find_reference_cycles(tables: Iterable[Table]) -> List[List[str]]:
    """
    Find groups of tables that reference each other, directly or indirectly.

    Uses Tarjan's strongly connected components algorithm. A group with a
    single table is only reported when the table references itself.

    Args:
        tables: Tables to inspect

    Returns:
        List of cycles, each a list of table names in input order
    """
    tables = list(tables)
    position = {table.name: index for index, table in enumerate(tables)}
    edges: Dict[str, List[str]] = {
        table.name: [fk.reference.ref_table_name for fk in table.foreign_keys]
        for table in tables
    }

    index_of: Dict[str, int] = {}
    low_link: Dict[str, int] = {}
    stack: List[str] = []
    on_stack: Set[str] = set()
    components: List[List[str]] = []
    counter = [0]

    def visit(name: str):
        index_of[name] = low_link[name] = counter[0]
        counter[0] += 1
        stack.append(name)
        on_stack.add(name)

        for target in edges.get(name, []):
            if target not in edges:
                continue
            if target not in index_of:
                visit(target)
                low_link[name] = min(low_link[name], low_link[target])
            elif target in on_stack:
                low_link[name] = min(low_link[name], index_of[target])

        if low_link[name] == index_of[name]:
            component = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member == name:
                    break
            components.append(component)

    for table in tables:
        if table.name not in index_of:
            visit(table.name)

    cycles = []
    for component in components:
        if len(component) > 1 or component[0] in edges[component[0]]:
            cycles.append(sorted(component, key=position.get))
    return sorted(cycles, key=lambda cycle: position[cycle[0]])


class DependencySorter:
    """
    Orders tables so that referenced tables come first.

    The sort is an iterative fixed point: each pass scans the current order,
    placing every missing referenced table just before the table referencing
    it. The pass result becomes the next pass input, until a pass places no
    referenced table. Tables without references keep their relative input
    position.
    """

    def __init__(self, tables: Iterable[Table], strict: bool = False):
        """
        Initialize the sorter.

        Args:
            tables: Tables to sort; names must be unique
            strict: Raise DependencyCycleError instead of tolerating cycles
        """
        self.tables: List[Table] = list(tables)
        self.strict = strict
        self._by_name: Dict[str, Table] = {}
        for table in self.tables:
            if table.name in self._by_name:
                raise SchemaDefinitionError(
                    f"Table '{table.name}' appears more than once", table=table.name
                )
            self._by_name[table.name] = table

    def _ordering_edges(self) -> Dict[str, List[str]]:
        """Referenced table names per table, without references inside cycles."""
        for table in self.tables:
            for fk in table.foreign_keys:
                if fk.reference.ref_table_name not in self._by_name:
                    raise SchemaDefinitionError(
                        f"Table '{table.name}' references table "
                        f"'{fk.reference.ref_table_name}' which is not part of the schema",
                        table=table.name
                    )

        cycles = find_reference_cycles(self.tables)
        if cycles and self.strict:
            raise DependencyCycleError(
                f"Found {len(cycles)} reference cycle(s) between tables", cycles=cycles
            )

        cycle_of: Dict[str, int] = {}
        for index, cycle in enumerate(cycles):
            logger.warning(
                f"Tables {' -> '.join(cycle + cycle[:1])} reference each other; "
                f"their foreign keys are not used for ordering"
            )
            for name in cycle:
                cycle_of[name] = index

        edges = {}
        for table in self.tables:
            targets = []
            for fk in table.foreign_keys:
                target = fk.reference.ref_table_name
                same_cycle = table.name in cycle_of and cycle_of.get(target) == cycle_of[table.name]
                if not same_cycle and target not in targets:
                    targets.append(target)
            edges[table.name] = targets
        return edges

    def sort(self) -> List[Table]:
        """
        Compute the creation order.

        Returns:
            The input tables, each exactly once, referenced tables first

        Raises:
            DependencyCycleError: In strict mode when a reference cycle exists
            DependencyResolutionError: If no fixed point is reached in time
        """
        edges = self._ordering_edges()
        unsorted = list(self.tables)
        max_passes = len(self.tables) ** 2 + 1

        for pass_number in range(1, max_passes + 1):
            done = True
            placed: List[str] = []
            for table in unsorted:
                for target in edges[table.name]:
                    if target not in placed:
                        placed.append(target)
                        done = False
                if table.name not in placed:
                    placed.append(table.name)
            unsorted = [self._by_name[name] for name in placed]
            if done:
                logger.debug(f"Dependency order settled after {pass_number} pass(es)")
                return unsorted

        raise DependencyResolutionError(
            f"Table order did not settle within {max_passes} passes",
            tables=[table.name for table in unsorted]
        )


def sort_tables(tables: Iterable[Table], strict: bool = False) -> List[Table]:
    """Convenience wrapper around DependencySorter."""
    return DependencySorter(tables, strict=strict).sort()
