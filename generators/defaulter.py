"""
Defaulter generator.
Generates a Default() method for every message type. When a field carries a declared default
(the (sensuproto.default) option by default), the value is assigned to the field in the struct,
written so Go can parse it for the field's type. Only string and scalar (numeric, bool, enum)
fields are supported; defaults declared on any other field are ignored.

Messages with a `metadata` field additionally get their Kind and ApiVersion stamped:

    func (r *Rule) Default() {
        r.Kind = "Rule"
        r.ApiVersion = SchemeGroupVersion.GroupVersionString()
        r.Namespace = "default"
    }
"""
from typing import Optional

from generators.generator_utils import camel_case_slice
from schema_model import SchemaField, SchemaFile, SchemaMessage, TypeKind, try_get_option

DEFAULT_OPTION = "(sensuproto.default)"
METADATA_FIELD = "metadata"

# Assignment template per type kind; None emits nothing
ASSIGNMENT_FORMATS = {
    TypeKind.STRING: '{receiver}.{field} = "{value}"',
    TypeKind.SCALAR: '{receiver}.{field} = {value}',
    TypeKind.UNSUPPORTED: None,
}


def get_default(field: Optional[SchemaField], option_key: str = DEFAULT_OPTION) -> Optional[str]:
    """Return the declared default for a field, or None if there is none (or it cannot be read as text)."""
    if field is None:
        return None
    return try_get_option(field.options, option_key, str)


class DefaulterPlugin:
    def __init__(self):
        self.generator = None

    def name(self) -> str:
        return "defaulter"

    def init(self, generator) -> None:
        self.generator = generator

    def generate(self, schema_file: SchemaFile) -> None:
        for message in schema_file.all_messages():
            self.generate_message(message)

    def generate_message(self, message: SchemaMessage) -> None:
        g = self.generator
        # e.g. Rule
        base_type_name = camel_case_slice(message.type_name)
        # "r" for use in func (r *Rule)
        receiver = base_type_name[0].lower()

        g.p()
        with g.block(f"func ({receiver} *{base_type_name}) Default() {{"):
            if message.get_field_descriptor(METADATA_FIELD) is not None:
                g.p(receiver, '.Kind = "', message.name, '"')
                g.p(receiver, '.ApiVersion = ', g.api_version_expr)

            for field in message.fields:
                default_value = get_default(field, g.default_option)
                if default_value is None:
                    if isinstance(field.options, dict) and field.options.get(g.default_option) is not None:
                        g.debug_print(f"Ignoring default on '{message.name}.{field.name}': "
                                      f"value is not a quoted string")
                    continue
                template = ASSIGNMENT_FORMATS[field.type_kind]
                if template is None:
                    g.debug_print(f"Ignoring default on '{message.name}.{field.name}': "
                                  f"unsupported field type '{field.field_type.value}'")
                    continue
                g.p(template.format(
                    receiver=receiver,
                    field=g.get_field_name(message, field),
                    value=default_value,
                ))
        g.p()

