# proto_loader.py
# Reads .proto files, builds SchemaFile objects from the lark tree and resolves field type names.
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from lark import Token, Tree
from lark.exceptions import LarkError

from proto_parser import parse_proto
from schema_model import (
    SCALAR_TYPE_NAMES,
    FieldLabel,
    FieldType,
    OptionIdentifier,
    SchemaEnum,
    SchemaEnumValue,
    SchemaField,
    SchemaFile,
    SchemaMessage,
)


# Convenience function to load a .proto file and return a SchemaFile

def load_proto_file(proto_file_path: str, import_paths: Optional[List[str]] = None, verbose: bool = False):
    loader = ProtoLoader(import_paths, verbose)
    schema = loader.load(proto_file_path)
    if schema is None:
        raise ValueError("; ".join(loader.errors))
    return schema


class ProtoLoader:
    """
    Loads .proto files into SchemaFile objects.
    Errors are collected in self.errors (the failing file yields None), warnings in self.warnings.
    """

    def __init__(self, import_paths: Optional[List[str]] = None, verbose: bool = False):
        self.import_paths = list(import_paths or [])
        self.verbose = verbose
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self._cache: Dict[str, SchemaFile] = {}
        self._failed = set()
        self._loading = set()

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}")

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        self.debug_print(f"Warning: {message}")

    def load(self, proto_file_path: str) -> Optional[SchemaFile]:
        """
        Load a .proto file and its imports.

        Returns:
            The schema for the file, or None if it could not be read or parsed
        """
        abs_path = os.path.abspath(proto_file_path)
        if abs_path in self._cache:
            return self._cache[abs_path]
        # Already reported
        if abs_path in self._failed:
            return None

        if not os.path.exists(proto_file_path):
            return self._fail(abs_path, f"Error: Input file '{proto_file_path}' does not exist.")

        try:
            with open(proto_file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            return self._fail(abs_path, f"Error: Failed to read '{proto_file_path}': {e}")

        try:
            tree = parse_proto(text)
        except LarkError as e:
            return self._fail(abs_path, f"Error: Failed to parse '{proto_file_path}': {e}")

        self.debug_print(f"Parsed {proto_file_path}")
        self._loading.add(abs_path)
        try:
            dependencies = self._load_imports(tree, proto_file_path)
        finally:
            self._loading.discard(abs_path)

        schema = build_schema_from_lark_tree(tree, proto_file_path, dependencies, warn=self.warn)
        self._cache[abs_path] = schema
        return schema

    def _fail(self, abs_path: str, error: str) -> None:
        self.errors.append(error)
        self._failed.add(abs_path)
        return None

    def _load_imports(self, tree: Tree, proto_file_path: str) -> Dict[str, SchemaFile]:
        dependencies = {}
        search_dirs = [os.path.dirname(os.path.abspath(proto_file_path))] + self.import_paths
        for node in tree.children:
            if not (isinstance(node, Tree) and node.data == 'import_stmt'):
                continue
            import_path = _string_value(node.children[-1])
            found = None
            for directory in search_dirs:
                candidate = os.path.join(directory, import_path)
                if os.path.isfile(candidate):
                    found = candidate
                    break
            if found is None:
                self.warn(f"Import '{import_path}' not found (imported from '{proto_file_path}')")
                continue
            if os.path.abspath(found) in self._loading:
                self.warn(f"Import cycle through '{import_path}' (imported from '{proto_file_path}')")
                continue
            self.debug_print(f"Loading import '{import_path}' from {found}")
            dep = self.load(found)
            if dep is not None:
                dependencies[import_path] = dep
        return dependencies


def build_schema_from_lark_tree(tree: Tree, source_file: str = None, dependencies: Optional[Dict[str, SchemaFile]] = None,
                                warn=None) -> SchemaFile:
    """Build a SchemaFile from a lark parse tree and resolve its field types."""
    file = source_file or "?"
    syntax = "proto2"
    package = None
    imports = []
    options = {}
    messages = []
    enums = []

    for node in tree.children:
        if not isinstance(node, Tree):
            continue
        if node.data == 'syntax_stmt':
            syntax = _string_value(node.children[0])
        elif node.data == 'package_stmt':
            package = _full_ident(node.children[0])
        elif node.data == 'import_stmt':
            imports.append(_string_value(node.children[-1]))
        elif node.data == 'option_stmt':
            key, value = _option(node)
            options[key] = value
        elif node.data == 'message_def':
            messages.append(_build_message(node, [], file))
        elif node.data == 'enum_def':
            enums.append(_build_enum(node, [], file))
        # services and extend blocks carry nothing for generation

    schema = SchemaFile(
        file=file,
        package=package,
        messages=messages,
        enums=enums,
        syntax=syntax,
        options=options,
        imports=imports,
        dependencies=dependencies,
    )
    resolve_field_types(schema, warn)
    return schema


def _build_message(node: Tree, parent_path: List[str], file: str) -> SchemaMessage:
    name = str(node.children[0])
    type_name = parent_path + [name]
    fields = []
    nested_messages = []
    nested_enums = []
    options = {}
    for child in node.children[1:]:
        if not isinstance(child, Tree):
            continue
        if child.data == 'field':
            fields.append(_build_field(child, file))
        elif child.data == 'map_field':
            fields.append(_build_map_field(child, file))
        elif child.data == 'oneof_def':
            oneof_name = str(child.children[0])
            for member in child.children[1:]:
                if isinstance(member, Tree) and member.data == 'field':
                    fields.append(_build_field(member, file, oneof=oneof_name))
        elif child.data == 'option_stmt':
            key, value = _option(child)
            options[key] = value
        elif child.data == 'message_def':
            nested_messages.append(_build_message(child, type_name, file))
        elif child.data == 'enum_def':
            nested_enums.append(_build_enum(child, type_name, file))
    return SchemaMessage(
        name=name,
        fields=fields,
        messages=nested_messages,
        enums=nested_enums,
        options=options,
        type_name=type_name,
        file=file,
        line=_line(node),
    )


def _build_field(node: Tree, file: str, oneof: Optional[str] = None) -> SchemaField:
    label = FieldLabel.NONE
    type_name = None
    name = None
    number = None
    options = {}
    for child in node.children:
        if isinstance(child, Tree):
            if child.data == 'label':
                label = FieldLabel(str(child.children[0]))
            elif child.data == 'field_type':
                type_name = _field_type_name(child)
            elif child.data == 'field_options':
                options = _field_options(child)
        elif isinstance(child, Token):
            if child.type == 'IDENT':
                name = str(child)
            elif child.type == 'INT_LIT':
                number = _int_value(str(child))
    field_type = SCALAR_TYPE_NAMES.get(type_name, FieldType.MESSAGE)
    return SchemaField(
        name=name,
        number=number,
        field_type=field_type,
        type_name=None if type_name in SCALAR_TYPE_NAMES else type_name,
        label=label,
        options=options,
        oneof=oneof,
        file=file,
        line=_line(node),
    )


def _build_map_field(node: Tree, file: str) -> SchemaField:
    idents = [c for c in node.children if isinstance(c, Token) and c.type == 'IDENT']
    value_type = next(c for c in node.children if isinstance(c, Tree) and c.data == 'field_type')
    number = next(c for c in node.children if isinstance(c, Token) and c.type == 'INT_LIT')
    options_node = next((c for c in node.children if isinstance(c, Tree) and c.data == 'field_options'), None)
    return SchemaField(
        name=str(idents[1]),
        number=_int_value(str(number)),
        field_type=FieldType.MAP,
        options=_field_options(options_node) if options_node is not None else {},
        map_key_type=str(idents[0]),
        map_value_type=_field_type_name(value_type),
        file=file,
        line=_line(node),
    )


def _build_enum(node: Tree, parent_path: List[str], file: str) -> SchemaEnum:
    name = str(node.children[0])
    values = []
    options = {}
    for child in node.children[1:]:
        if not isinstance(child, Tree):
            continue
        if child.data == 'enum_value':
            values.append(_build_enum_value(child))
        elif child.data == 'option_stmt':
            key, value = _option(child)
            options[key] = value
    return SchemaEnum(name, values, options=options, type_name=parent_path + [name], file=file, line=_line(node))


def _build_enum_value(node: Tree) -> SchemaEnumValue:
    name = str(node.children[0])
    sign = ""
    number = 0
    options = {}
    for child in node.children[1:]:
        if isinstance(child, Token) and child.type == 'SIGN':
            sign = str(child)
        elif isinstance(child, Token) and child.type == 'INT_LIT':
            number = _int_value(str(child))
        elif isinstance(child, Tree) and child.data == 'field_options':
            options = _field_options(child)
    if sign == "-":
        number = -number
    return SchemaEnumValue(name, number, options=options, line=node.children[0].line)


# --- Type resolution ---

def _collect_definitions(schema: SchemaFile, definitions: Dict[str, str], seen: set) -> None:
    if id(schema) in seen:
        return
    seen.add(id(schema))
    for msg in schema.all_messages():
        definitions[schema.qualified_name(msg.type_name)] = 'message'
    for enum in schema.all_enums():
        definitions[schema.qualified_name(enum.type_name)] = 'enum'
    for dep in schema.dependencies.values():
        _collect_definitions(dep, definitions, seen)


def _resolve_name(name: str, scope: List[str], definitions: Dict[str, str]) -> Tuple[Optional[str], Optional[str]]:
    """Protobuf scoping: absolute when the name starts with '.', otherwise innermost scope first."""
    if name.startswith('.'):
        qualified = name[1:]
        return qualified, definitions.get(qualified)
    for i in range(len(scope), -1, -1):
        candidate = '.'.join(scope[:i] + [name])
        if candidate in definitions:
            return candidate, definitions[candidate]
    return None, None


def resolve_field_types(schema: SchemaFile, warn=None) -> None:
    """Set field_type to ENUM or MESSAGE for every field declared with a named type."""
    definitions: Dict[str, str] = {}
    _collect_definitions(schema, definitions, set())
    package_scope = schema.package.split('.') if schema.package else []
    for msg in schema.all_messages():
        scope = package_scope + msg.type_name
        for field in msg.fields:
            if field.type_name is None or field.field_type == FieldType.MAP:
                continue
            qualified, kind = _resolve_name(field.type_name, scope, definitions)
            if kind == 'enum':
                field.field_type = FieldType.ENUM
            elif kind == 'message':
                field.field_type = FieldType.MESSAGE
            else:
                field.field_type = FieldType.MESSAGE
                field.resolved = False
                if warn is not None:
                    warn(f"{schema.file}:{field.line}: unresolved type '{field.type_name}' for field "
                         f"'{'.'.join(msg.type_name)}.{field.name}'")
                continue
            field.type_name = qualified


# --- Options and constants ---

def _field_type_name(node: Tree) -> str:
    leading_dot = any(isinstance(c, Token) and c.type == 'DOT' for c in node.children[:1])
    ident = next(c for c in node.children if isinstance(c, Tree) and c.data == 'full_ident')
    return ('.' if leading_dot else '') + _full_ident(ident)


def _field_options(node: Tree) -> Dict[str, Any]:
    options = {}
    for child in node.children:
        if isinstance(child, Tree) and child.data == 'field_option':
            key, value = _option(child)
            options[key] = value
    return options


def _option(node: Tree) -> Tuple[str, Any]:
    """Return (key, value) for an option_stmt or field_option node."""
    name_node = next(c for c in node.children if isinstance(c, Tree) and c.data == 'option_name')
    value_node = node.children[-1]
    return _option_name(name_node), _constant_value(value_node)


def _option_name(node: Tree) -> str:
    parts = []
    for part in node.children:
        if not isinstance(part, Tree):
            continue
        if part.data == 'simple_option_part':
            parts.append(str(part.children[0]))
        elif part.data == 'extension_option_part':
            ident = next(c for c in part.children if isinstance(c, Tree))
            parts.append(f"({_full_ident(ident)})")
    return '.'.join(parts)


def _constant_value(node: Tree) -> Any:
    if node.data == 'constant':
        # Unaliased alternatives (aggregate, list) are wrapped in a constant node
        return _constant_value(node.children[0])
    sign = ""
    tokens = [c for c in node.children if isinstance(c, Token)]
    if tokens and tokens[0].type == 'SIGN':
        sign = str(tokens[0])
    if node.data == 'string_constant':
        return _string_value(node.children[0])
    if node.data == 'int_constant':
        value = _int_value(str(tokens[-1]))
        return -value if sign == "-" else value
    if node.data == 'float_constant':
        return float(sign + str(tokens[-1]))
    if node.data == 'ident_constant':
        name = _full_ident(node.children[-1])
        if not sign and name in ('true', 'false'):
            return name == 'true'
        if name in ('inf', 'nan'):
            return float(sign + name)
        return OptionIdentifier(sign + name)
    if node.data == 'aggregate':
        return _aggregate_value(node)
    if node.data == 'list_constant':
        return [_constant_value(c) for c in node.children if isinstance(c, Tree)]
    raise ValueError(f"Unknown constant node '{node.data}'")


def _aggregate_value(node: Tree) -> Dict[str, Any]:
    result = {}
    for field in node.children:
        key_node, value_node = field.children[0], field.children[1]
        key_child = key_node.children[0]
        if isinstance(key_child, Tree):
            key = f"[{_full_ident(key_child)}]"
        else:
            key = str(key_child)
        value = _constant_value(value_node)
        # Repeated keys accumulate, as in text format
        if key in result:
            existing = result[key]
            result[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            result[key] = value
    return result


def _full_ident(node: Tree) -> str:
    return '.'.join(str(c) for c in node.children if isinstance(c, Token) and c.type == 'IDENT')


def _int_value(text: str) -> int:
    if text[:2] in ('0x', '0X'):
        return int(text, 16)
    if len(text) > 1 and text.startswith('0'):
        return int(text, 8)
    return int(text)


_ESCAPES = {
    'a': '\a', 'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t', 'v': '\v',
    '\\': '\\', "'": "'", '"': '"', '?': '?',
}
_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]{1,2}|[0-7]{1,3}|.)")


def _unescape(body: str) -> str:
    def replace(match):
        esc = match.group(1)
        if esc[0] in 'xX' and len(esc) > 1:
            return chr(int(esc[1:], 16))
        if esc[0] in '01234567':
            return chr(int(esc, 8))
        return _ESCAPES.get(esc, esc)
    return _ESCAPE_RE.sub(replace, body)


def _string_value(node: Tree) -> str:
    """Concatenate and unescape the STRING tokens of a string_lit node."""
    return ''.join(_unescape(str(tok)[1:-1]) for tok in node.children if isinstance(tok, Token))


def _line(node: Tree) -> Optional[int]:
    line = getattr(node, 'line', None)
    if line is not None:
        return line
    for child in node.children:
        if isinstance(child, Token) and child.type == 'IDENT':
            return child.line
    return None
