"""
Source templates for generated artifacts.

Layout of a generated package:

    __init__.py                      re-exports records and table mappings
    entity/__init__.py               re-exports records and enumerations
    entity/<table>.py                one record dataclass per table
    entity/enums/__init__.py         re-exports enumerations and capabilities
    entity/enums/capabilities.py     each capability declared once
    entity/enums/<table>_<column>.py one enumeration per column
    mapping/__init__.py              re-exports table mappings
    mapping/<table>_table.py         one table mapping per table
"""
from typing import TYPE_CHECKING

from jinja2 import DictLoader, Environment, StrictUndefined

if TYPE_CHECKING:
    from tablekit.codegen.entity import GeneratedEntity
    from tablekit.codegen.enums import EnumerationDefinition

__all__ = ['render_artifacts', 'environment']

_HEADER = '# Generated by tablekit. Do not edit.\n'

_TEMPLATES = {
    'package_init.py.j2': _HEADER + '''\
from .entity import *  # noqa: F403
from .mapping import *  # noqa: F403
''',

    'entity_init.py.j2': _HEADER + '''\
{% for entity in entities %}
from .{{ entity.module }} import {{ entity.record_name }}
{% endfor %}
from .enums import *  # noqa: F403

__all__ = [
{% for entity in entities %}
    '{{ entity.record_name }}',
{% endfor %}
]
''',

    'enums_init.py.j2': _HEADER + '''\
{% if capabilities %}
from .capabilities import {{ capabilities | join(', ') }}
{% endif %}
{% for enum in enumerations %}
from .{{ enum.module }} import {{ enum.name }}
{% endfor %}

__all__ = [
{% for name in capabilities %}
    '{{ name }}',
{% endfor %}
{% for enum in enumerations %}
    '{{ enum.name }}',
{% endfor %}
]
''',

    'capabilities.py.j2': _HEADER + '''\
{% for name in capabilities %}


class {{ name }}:
    """Capability shared by the enumerations bound to it."""
{% endfor %}
''',

    'enum.py.j2': _HEADER + '''\
from {{ runtime }}.record import LabeledEnum
{% if enum.capability %}

from .capabilities import {{ enum.capability }}
{% endif %}
{% if enum.valid_identifiers %}


class {{ enum.name }}({% if enum.capability %}{{ enum.capability }}, {% endif %}LabeledEnum):
    """Labels of `{{ enum.source_table }}.{{ enum.source_column }}`."""
{% for member in enum.members %}
    {{ member.identifier }} = {{ member.label | pyrepr }}
{% endfor %}
{% else %}

{{ enum.name }} = LabeledEnum(
    '{{ enum.name }}',
    [
{% for member in enum.members %}
        ({{ member.identifier | pyrepr }}, {{ member.label | pyrepr }}),
{% endfor %}
    ],
    module=__name__,
{% if enum.capability %}
    type={{ enum.capability }},
{% endif %}
)
{% endif %}
''',

    'record.py.j2': _HEADER + '''\
{% if entity.needs_datetime %}
import datetime
{% endif %}
from dataclasses import dataclass
from typing import Any, ClassVar

from {{ runtime }}.mapping.types import SemanticType
from {{ runtime }}.record import Record, RecordColumn
{% if entity.enumeration_names %}

from .enums import {{ entity.enumeration_names | join(', ') }}
{% endif %}


@dataclass
class {{ entity.record_name }}(Record):
    """Row of `{{ entity.table_name }}`."""
    __table__: ClassVar[str] = {{ entity.table_name | pyrepr }}
    __columns__: ClassVar[tuple[RecordColumn, ...]] = (
{% for f in entity.fields %}
        RecordColumn({{ f.name | pyrepr }}, {{ f.wire_name | pyrepr }}, SemanticType.{{ f.semantic.name }}{% if f.enumeration %}, {{ f.enumeration.name }}{% endif %}),
{% endfor %}
    )

{% for f in entity.fields %}
    {{ f.name }}: {{ f.annotation }} = None
{% endfor %}
    _associated: Any = None
''',

    'mapping_init.py.j2': _HEADER + '''\
{% for entity in entities %}
from .{{ entity.mapping_module }} import {{ entity.mapping_name }}
{% endfor %}

__all__ = [
{% for entity in entities %}
    '{{ entity.mapping_name }}',
{% endfor %}
]
''',

    'mapping.py.j2': _HEADER + '''\
from {{ runtime }}.query.columns import {{ entity.column_classes | join(', ') }}
from {{ runtime }}.query.table import ColumnSpec, Table

from ..entity import {{ entity.record_name }}
{% if entity.enumeration_names %}
from ..entity.enums import {{ entity.enumeration_names | join(', ') }}
{% endif %}


class {{ entity.mapping_name }}(Table):
    """Columns of `{{ entity.table_name }}`."""
    table_name = {{ entity.table_name | pyrepr }}
    record_type = {{ entity.record_name }}
    __columns__ = (
{% for f in entity.fields %}
        ColumnSpec({{ f.name | pyrepr }}, {{ f.wire_name | pyrepr }}, {{ f.column_class }}{% if f.enumeration %}, {{ f.enumeration.name }}{% endif %}{% if f.encrypted %}, encrypted=True{% endif %}{% if f.primary_key %}, primary_key=True{% endif %}),
{% endfor %}
    )

{% for f in entity.fields %}
    {{ f.name }}: {{ f.column_annotation }}
{% endfor %}
''',
}


def environment() -> Environment:
    env = Environment(
        loader=DictLoader(_TEMPLATES),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters['pyrepr'] = repr
    return env


def render_artifacts(entities: list['GeneratedEntity'],
                     enumerations: list['EnumerationDefinition'],
                     capabilities: list[str],
                     runtime: str = 'tablekit') -> dict[str, str]:
    """Render every artifact of a generated package.

    Args:
        entities: Generated records, in table order
        enumerations: Enumerations used by those records
        capabilities: Distinct capability names
        runtime: Import path of this library inside generated code

    Returns
        Relative path -> source text
    """
    env = environment()

    def render(name, **context):
        return env.get_template(name).render(runtime=runtime, **context)

    artifacts = {
        '__init__.py': render('package_init.py.j2'),
        'entity/__init__.py': render('entity_init.py.j2', entities=entities),
        'entity/enums/__init__.py': render('enums_init.py.j2', enumerations=enumerations,
                                           capabilities=capabilities),
        'mapping/__init__.py': render('mapping_init.py.j2', entities=entities),
    }
    if capabilities:
        artifacts['entity/enums/capabilities.py'] = render('capabilities.py.j2',
                                                           capabilities=capabilities)
    for enum in enumerations:
        artifacts[f'entity/enums/{enum.module}.py'] = render('enum.py.j2', enum=enum)
    for entity in entities:
        artifacts[f'entity/{entity.module}.py'] = render('record.py.j2', entity=entity)
        artifacts[f'mapping/{entity.mapping_module}.py'] = render('mapping.py.j2', entity=entity)
    return artifacts
