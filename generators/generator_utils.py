"""
Shared utilities for code generators.
Handles Go identifier casing, field name resolution and package naming.
"""
import os
import re
from typing import List, Optional

from schema_model import SchemaField, SchemaFile, SchemaMessage, try_get_option

CUSTOM_NAME_OPTION = "(gogoproto.customname)"

# Methods generated on every message type; fields with these names get a trailing underscore
GO_METHOD_NAMES = {
    "Reset",
    "String",
    "ProtoMessage",
    "Marshal",
    "Unmarshal",
    "ExtensionRangeArray",
    "ExtensionMap",
    "Descriptor",
    "Size",
}


# --- Casing ---
def camel_case(s: str) -> str:
    """
    Convert a protobuf identifier to an exported Go identifier.
    A leading underscore becomes 'X', '_x' becomes 'X', and a lower-case letter after a digit is upper-cased.
    An underscore followed by anything but a lower-case letter is kept, so 'Outer_Inner' is unchanged.
    """
    if not s:
        return ""
    out = []
    i = 0
    if s[0] == '_':
        out.append('X')
        i = 1
    while i < len(s):
        c = s[i]
        if c == '_' and i + 1 < len(s) and s[i + 1].islower():
            i += 1
            continue
        if c.isdigit():
            out.append(c)
            i += 1
            continue
        if c.islower() and (i == 0 or s[i - 1] == '_' or s[i - 1].isdigit()):
            c = c.upper()
        out.append(c)
        i += 1
    return ''.join(out)


def camel_case_slice(parts: List[str]) -> str:
    """Join a type name path with '_' and camel-case the result."""
    return camel_case('_'.join(parts))


# --- Name Resolution ---
def go_field_name(message: Optional[SchemaMessage], field: SchemaField) -> str:
    name = camel_case(field.name)
    custom = try_get_option(field.options, CUSTOM_NAME_OPTION, str)
    if custom:
        name = custom
    if field.oneof is not None:
        name = camel_case(field.oneof)
    if name in GO_METHOD_NAMES:
        return name + "_"
    return name


def go_package_name(schema_file: SchemaFile) -> str:
    go_package = try_get_option(schema_file.options, "go_package", str)
    if go_package:
        if ';' in go_package:
            name = go_package.split(';', 1)[1]
        else:
            name = go_package.rstrip('/').split('/')[-1]
    elif schema_file.package:
        name = schema_file.package.split('.')[-1]
    else:
        name = os.path.splitext(os.path.basename(schema_file.file))[0]
    return _go_identifier(name)


def _go_identifier(name: str) -> str:
    name = re.sub(r'[^A-Za-z0-9_]', '_', name)
    if not name or name[0].isdigit():
        name = '_' + name
    return name
