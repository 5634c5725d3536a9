"""
schema_model.py
Generator-ready representation of a parsed .proto file. Type names on fields are resolved
to a FieldType, and every field can be classified into the TypeKind families used by the generators.
"""
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class FieldType(Enum):
    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    ENUM = "enum"
    MESSAGE = "message"
    MAP = "map"


# Builtin type names as they appear in .proto source
SCALAR_TYPE_NAMES = {
    ft.value: ft for ft in FieldType
    if ft not in (FieldType.ENUM, FieldType.MESSAGE, FieldType.MAP)
}

# Types a literal can be assigned to directly, besides string
SCALAR_FIELD_TYPES = {
    FieldType.DOUBLE,
    FieldType.FLOAT,
    FieldType.INT32,
    FieldType.INT64,
    FieldType.UINT32,
    FieldType.UINT64,
    FieldType.SINT32,
    FieldType.SINT64,
    FieldType.FIXED32,
    FieldType.FIXED64,
    FieldType.SFIXED32,
    FieldType.SFIXED64,
    FieldType.BOOL,
    FieldType.ENUM,
}


class FieldLabel(Enum):
    NONE = ""
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


class TypeKind(Enum):
    """Closed classification of a field for default emission."""
    STRING = "string"
    SCALAR = "scalar"
    UNSUPPORTED = "unsupported"


class OptionIdentifier(str):
    """An option constant written as a bare identifier (e.g. an enum value or inf)."""
    def __repr__(self):
        return f"OptionIdentifier({str.__repr__(self)})"


def try_get_option(options: Any, key: str, expected_type: type = str) -> Optional[Any]:
    """
    Typed lookup of an option value. Returns None when the options object is not a mapping,
    the key is missing, or the stored value does not decode as expected_type.
    """
    if not isinstance(options, dict):
        return None
    value = options.get(key)
    if value is None:
        return None
    if expected_type is str and isinstance(value, OptionIdentifier):
        return None
    if expected_type is int and isinstance(value, bool):
        return None
    if not isinstance(value, expected_type):
        return None
    return value


class SchemaField:
    def __init__(
        self,
        name: str,
        number: int,
        field_type: FieldType,
        type_name: Optional[str] = None,  # Declared name for enum/message types
        label: FieldLabel = FieldLabel.NONE,
        options: Optional[Dict[str, Any]] = None,
        oneof: Optional[str] = None,
        map_key_type: Optional[str] = None,
        map_value_type: Optional[str] = None,
        resolved: bool = True,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ):
        self.name = name
        self.number = number
        self.field_type = field_type
        self.type_name = type_name
        self.label = label
        self.options = options if options is not None else {}
        self.oneof = oneof
        self.map_key_type = map_key_type
        self.map_value_type = map_value_type
        self.resolved = resolved
        self.file = file
        self.line = line

    @property
    def is_repeated(self) -> bool:
        return self.label == FieldLabel.REPEATED or self.field_type == FieldType.MAP

    @property
    def is_map(self) -> bool:
        return self.field_type == FieldType.MAP

    def is_string(self) -> bool:
        return self.field_type == FieldType.STRING

    def is_scalar(self) -> bool:
        return self.field_type in SCALAR_FIELD_TYPES

    @property
    def type_kind(self) -> TypeKind:
        # Repeated, map and oneof members are never assigned a plain literal
        if self.is_repeated or self.oneof is not None:
            return TypeKind.UNSUPPORTED
        if self.is_string():
            return TypeKind.STRING
        if self.is_scalar():
            return TypeKind.SCALAR
        return TypeKind.UNSUPPORTED

    def __repr__(self):
        return f"SchemaField(name={self.name!r}, number={self.number}, field_type={self.field_type.value!r})"


class SchemaEnumValue:
    def __init__(self, name: str, number: int, options: Optional[Dict[str, Any]] = None, line: Optional[int] = None):
        self.name = name
        self.number = number
        self.options = options if options is not None else {}
        self.line = line


class SchemaEnum:
    def __init__(self, name: str, values: List[SchemaEnumValue], options: Optional[Dict[str, Any]] = None,
                 type_name: Optional[List[str]] = None, file: Optional[str] = None, line: Optional[int] = None):
        self.name = name
        self.values = values
        self.options = options if options is not None else {}
        self.type_name = type_name or [name]
        self.file = file
        self.line = line


class SchemaMessage:
    def __init__(self, name: str, fields: List[SchemaField], messages: Optional[List['SchemaMessage']] = None,
                 enums: Optional[List[SchemaEnum]] = None, options: Optional[Dict[str, Any]] = None,
                 type_name: Optional[List[str]] = None, file: Optional[str] = None, line: Optional[int] = None):
        self.name = name
        self.fields = fields
        self.messages = messages or []
        self.enums = enums or []
        self.options = options if options is not None else {}
        # Path of enclosing message names plus this one, e.g. ['Outer', 'Inner']
        self.type_name = type_name or [name]
        self.file = file
        self.line = line

    def get_field_descriptor(self, name: str) -> Optional[SchemaField]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def __repr__(self):
        return f"SchemaMessage(type_name={'.'.join(self.type_name)!r}, fields={len(self.fields)})"


class SchemaFile:
    def __init__(self, file: str, package: Optional[str], messages: List[SchemaMessage], enums: List[SchemaEnum],
                 syntax: str = "proto2", options: Optional[Dict[str, Any]] = None,
                 imports: Optional[List[str]] = None, dependencies: Optional[Dict[str, 'SchemaFile']] = None):
        self.file = file
        self.package = package
        self.messages = messages
        self.enums = enums
        self.syntax = syntax
        self.options = options if options is not None else {}
        self.imports = imports or []
        self.dependencies = dependencies if dependencies is not None else {}  # key: import path

    def all_messages(self) -> Iterator[SchemaMessage]:
        """Every message in declaration order, each message followed by its nested messages."""
        def walk(messages):
            for msg in messages:
                yield msg
                yield from walk(msg.messages)
        yield from walk(self.messages)

    def all_enums(self) -> Iterator[SchemaEnum]:
        yield from self.enums
        for msg in self.all_messages():
            yield from msg.enums

    def qualified_name(self, type_name: List[str]) -> str:
        parts = ([self.package] if self.package else []) + list(type_name)
        return ".".join(parts)
