"""
Generation of records, enumerations and table mappings.
"""
from tablekit.codegen.entity import EntityGenerator, GeneratedEntity
from tablekit.codegen.entity import GeneratedField, GenerationReport
from tablekit.codegen.entity import SkippedTable
from tablekit.codegen.enums import CapabilityBindings, EnumerationDefinition
from tablekit.codegen.enums import EnumerationGenerator
from tablekit.codegen.sink import ArtifactSink, DirectorySink, MemorySink

__all__ = [
    'EntityGenerator',
    'GeneratedEntity',
    'GeneratedField',
    'GenerationReport',
    'SkippedTable',
    'EnumerationGenerator',
    'EnumerationDefinition',
    'CapabilityBindings',
    'ArtifactSink',
    'DirectorySink',
    'MemorySink',
]
