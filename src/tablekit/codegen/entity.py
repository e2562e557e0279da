"""
Record generation from a live schema.

`EntityGenerator` walks the introspected tables, resolves every column
and renders one record, one table mapping and one module per enumeration
into an artifact sink. Two failure channels are kept apart:

- an unsupported column type raises `UnsupportedColumnTypeError` and
  nothing is written
- a table whose columns cannot be read is logged, recorded in
  `GenerationReport.skipped_tables`, and the run continues
"""
import logging
from dataclasses import dataclass, field
from typing import Protocol

import sqlalchemy as sa
from tablekit.codegen.enums import EnumerationDefinition, EnumerationGenerator
from tablekit.codegen.sink import ArtifactSink, DirectorySink
from tablekit.codegen.templates import render_artifacts
from tablekit.exceptions import IntrospectionError
from tablekit.mapping.resolver import SemanticTypeResolver
from tablekit.mapping.types import ResolvedType, SemanticType
from tablekit.naming import safe_field_name, to_pascal, to_snake
from tablekit.options import GeneratorOptions
from tablekit.types import ColumnSchema

logger = logging.getLogger(__name__)

__all__ = [
    'GeneratedField',
    'GeneratedEntity',
    'SkippedTable',
    'GenerationReport',
    'EntityGenerator',
]


class Introspector(Protocol):

    def list_tables(self) -> list[str]: ...

    def describe_table(self, table: str) -> list[ColumnSchema]: ...


@dataclass(frozen=True)
class GeneratedField:
    """One record field.

    `name` is the in-memory field name; `wire_name` is the column name,
    which differs only when the column name is a reserved word.
    """
    name: str
    wire_name: str
    resolved: ResolvedType
    reserved_collision: bool = False
    primary_key: bool = False
    nullable: bool = True
    encrypted: bool = False

    @property
    def semantic(self) -> SemanticType:
        return self.resolved.semantic

    @property
    def annotation(self) -> str:
        return self.resolved.annotation

    @property
    def enumeration(self) -> EnumerationDefinition | None:
        return self.resolved.enumeration

    @property
    def column_class(self) -> str:
        return self.resolved.column_class

    @property
    def column_annotation(self) -> str:
        if self.enumeration is not None:
            return f'{self.column_class}[{self.enumeration.name}]'
        return self.column_class


@dataclass
class GeneratedEntity:
    table_name: str
    record_name: str
    fields: list[GeneratedField] = field(default_factory=list)
    enumerations_used: list[str] = field(default_factory=list)

    @property
    def module(self) -> str:
        return to_snake(self.table_name)

    @property
    def mapping_name(self) -> str:
        return f'{self.record_name}Table'

    @property
    def mapping_module(self) -> str:
        return f'{self.module}_table'

    @property
    def primary_key(self) -> list[str]:
        return [f.wire_name for f in self.fields if f.primary_key]

    @property
    def enumeration_names(self) -> list[str]:
        names = [f.enumeration.name for f in self.fields if f.enumeration is not None]
        return list(dict.fromkeys(names))

    @property
    def column_classes(self) -> list[str]:
        return sorted({f.column_class for f in self.fields})

    @property
    def needs_datetime(self) -> bool:
        return any(f.semantic.is_temporal for f in self.fields)


@dataclass(frozen=True)
class SkippedTable:
    table: str
    reason: str


@dataclass
class GenerationReport:
    """Outcome of a generation run."""
    entities: list[GeneratedEntity] = field(default_factory=list)
    enumerations: list[EnumerationDefinition] = field(default_factory=list)
    capabilities: list[str] = field(default_factory=list)
    skipped_tables: list[SkippedTable] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)


class EntityGenerator:
    """Generate records, enumerations and table mappings for a schema.

    Args:
        introspector: Source of table names and column descriptors
        options: Boolean tables, capability bindings, encrypted columns,
            table allow-list and output directory
        sink: Where artifacts go; defaults to `options.output_dir`
    """

    def __init__(self, introspector: Introspector, options: GeneratorOptions | None = None,
                 sink: ArtifactSink | None = None):
        self.introspector = introspector
        self.options = options or GeneratorOptions()
        self.sink = sink or DirectorySink(self.options.output_dir)
        self.enumerations = EnumerationGenerator(self.options.capability_bindings)
        self.resolver = SemanticTypeResolver(self.options.boolean_tables, self.enumerations)

    def generate_entity(self, table: str, columns: list[ColumnSchema]) -> GeneratedEntity:
        """Resolve every column of one table, in declared order.

        Raises
            UnsupportedColumnTypeError: a column type is not modelled
        """
        entity = GeneratedEntity(table_name=table, record_name=to_pascal(table))
        for column in columns:
            resolved = self.resolver.resolve(column.raw_type, table, column.name)
            name, renamed = safe_field_name(column.name)
            if renamed:
                logger.debug(f'{table}.{column.name} renamed to {name}')
            entity.fields.append(GeneratedField(
                name=name,
                wire_name=column.name,
                resolved=resolved,
                reserved_collision=renamed,
                primary_key=column.is_primary_key,
                nullable=column.nullable,
                encrypted=self.options.is_encrypted(table, column.name),
            ))
            if resolved.enumeration is not None and resolved.enumeration.module not in entity.enumerations_used:
                entity.enumerations_used.append(resolved.enumeration.module)
        return entity

    def _tables(self) -> list[str]:
        if self.options.tables:
            return list(self.options.tables)
        return self.introspector.list_tables()

    def generate(self) -> GenerationReport:
        """Run generation and write the artifacts.

        Returns
            GenerationReport with generated entities and skipped tables

        Raises
            UnsupportedColumnTypeError: fatal; no artifact is written
            IntrospectionError: the table list could not be read
        """
        report = GenerationReport()
        for table in self._tables():
            try:
                columns = self.introspector.describe_table(table)
            except (IntrospectionError, sa.exc.SQLAlchemyError) as exc:
                logger.warning(f'Skipping table {table}: {exc}')
                report.skipped_tables.append(SkippedTable(table, str(exc)))
                continue
            report.entities.append(self.generate_entity(table, columns))

        used = {m for e in report.entities for m in e.enumerations_used}
        report.enumerations = [e for e in self.enumerations.definitions() if e.module in used]
        report.capabilities = self.enumerations.bindings.capabilities()

        artifacts = render_artifacts(report.entities, report.enumerations,
                                     report.capabilities, self.options.runtime_package)
        for path, text in artifacts.items():
            self.sink.write(path, text)
        report.artifacts = list(artifacts)
        logger.info(f'Generated {len(report.entities)} records and {len(report.enumerations)} '
                    f'enumerations; skipped {len(report.skipped_tables)} tables')
        return report
