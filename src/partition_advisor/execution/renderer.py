"""
T-SQL rendering of maintenance directives.
"""

from datetime import datetime
from typing import Optional, Sequence

from ..maintenance.models import Compression, DirectiveKind, MaintenanceDirective


def quote_name(name: str) -> str:
    """Bracket-quote an identifier, leaving already-quoted names alone."""
    if name.startswith('[') and name.endswith(']'):
        return name
    return '[' + name.replace(']', ']]') + ']'


class TsqlRenderer:
    """Turns structured directives into engine-native statements."""

    def __init__(self, sort_in_tempdb: bool = True):
        self.sort_in_tempdb = sort_in_tempdb

    def render(self, directive: MaintenanceDirective) -> str:
        kind = directive.kind
        if kind == DirectiveKind.REORGANIZE:
            return self._reorganize(directive)
        if kind == DirectiveKind.REBUILD:
            return self._rebuild(directive)
        if kind == DirectiveKind.COMPRESS:
            return self._compress(directive)
        if kind == DirectiveKind.DROP_INDEX:
            return f"DROP INDEX {quote_name(directive.target_index)} ON {directive.table_name};"
        if kind == DirectiveKind.CREATE_INDEX:
            return self._create(directive)
        if kind == DirectiveKind.UPDATE_STATISTICS:
            return f"UPDATE STATISTICS {directive.table_name} WITH RESAMPLE;"
        raise ValueError(f"Unsupported directive kind: {kind}")

    def _partition_clause(self, directive: MaintenanceDirective) -> str:
        if directive.partition_number is None:
            return ""
        return f" PARTITION = {directive.partition_number}"

    def _reorganize(self, directive: MaintenanceDirective) -> str:
        return (
            f"ALTER INDEX {quote_name(directive.target_index)} ON {directive.table_name}"
            f" REORGANIZE{self._partition_clause(directive)};"
        )

    def _rebuild(self, directive: MaintenanceDirective) -> str:
        options = self._options(directive.online, self.sort_in_tempdb, directive.compression)
        return (
            f"ALTER INDEX {quote_name(directive.target_index)} ON {directive.table_name}"
            f" REBUILD{self._partition_clause(directive)}{options};"
        )

    def _compress(self, directive: MaintenanceDirective) -> str:
        compression = directive.compression or Compression.PAGE
        online = ", ONLINE = ON" if directive.online else ""
        return (
            f"ALTER TABLE {directive.table_name} REBUILD{self._partition_clause(directive)}"
            f" WITH (DATA_COMPRESSION = {compression.value}{online});"
        )

    def _create(self, directive: MaintenanceDirective) -> str:
        keys = ', '.join(quote_name(c) for c in directive.key_columns)
        sql = f"CREATE NONCLUSTERED INDEX {quote_name(directive.target_index)} ON {directive.table_name} ({keys})"
        if directive.included_columns:
            sql += " INCLUDE (" + ', '.join(quote_name(c) for c in directive.included_columns) + ")"
        if directive.new_filter_predicate:
            sql += f" WHERE {directive.new_filter_predicate}"
        if directive.storage:
            sql += f" ON {directive.storage}"
        return sql + self._options(directive.online, self.sort_in_tempdb, directive.compression) + ";"

    @staticmethod
    def _options(online: bool, sort_in_tempdb: bool, compression: Optional[Compression]) -> str:
        options = []
        if online:
            options.append("ONLINE = ON")
        if sort_in_tempdb:
            options.append("SORT_IN_TEMPDB = ON")
        if compression is not None:
            options.append(f"DATA_COMPRESSION = {compression.value}")
        return f" WITH ({', '.join(options)})" if options else ""

    def render_script(self, directives: Sequence[MaintenanceDirective],
                      generated_at: Optional[datetime] = None) -> str:
        """Render a whole plan as a commented script, one statement per directive."""
        generated_at = generated_at or datetime.now()
        lines = [
            "-- Partition Maintenance Script",
            f"-- Generated at: {generated_at.isoformat()}",
            "",
        ]
        for directive in directives:
            if directive.reason:
                lines.append(f"-- {directive.reason}")
            lines.append(self.render(directive))
            lines.append("")
        return "\n".join(lines)
