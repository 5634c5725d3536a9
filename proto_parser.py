from lark import Lark, Transformer


# Grammar for proto2/proto3 schema files (groups and editions are not supported)
grammar = r"""
    start: _statement*
    _statement: syntax_stmt
        | import_stmt
        | package_stmt
        | option_stmt
        | message_def
        | enum_def
        | service_def
        | extend_def
        | _empty_stmt

    syntax_stmt: "syntax" "=" string_lit ";"
    import_stmt: "import" import_modifier? string_lit ";"
    !import_modifier: "weak" | "public"
    package_stmt: "package" full_ident ";"

    option_stmt: "option" option_name "=" constant ";"
    option_name: option_name_part ("." option_name_part)*
    option_name_part: IDENT -> simple_option_part
        | "(" DOT? full_ident ")" -> extension_option_part

    message_def: "message" IDENT "{" _message_element* "}"
    _message_element: field
        | map_field
        | oneof_def
        | option_stmt
        | message_def
        | enum_def
        | extend_def
        | reserved
        | extensions
        | _empty_stmt

    field: label? field_type IDENT "=" INT_LIT field_options? ";"
    !label: "repeated" | "optional" | "required"
    field_type: DOT? full_ident
    field_options: "[" field_option ("," field_option)* "]"
    field_option: option_name "=" constant

    map_field: "map" "<" IDENT "," field_type ">" IDENT "=" INT_LIT field_options? ";"

    oneof_def: "oneof" IDENT "{" _oneof_element* "}"
    _oneof_element: option_stmt | field | _empty_stmt

    reserved: "reserved" (ranges | reserved_names) ";"
    reserved_names: string_lit ("," string_lit)*
    extensions: "extensions" ranges field_options? ";"
    ranges: range ("," range)*
    range: INT_LIT ("to" (INT_LIT | "max"))?

    extend_def: "extend" DOT? full_ident "{" (field | _empty_stmt)* "}"

    enum_def: "enum" IDENT "{" _enum_element* "}"
    _enum_element: option_stmt | enum_value | reserved | _empty_stmt
    enum_value: IDENT "=" SIGN? INT_LIT field_options? ";"

    service_def: "service" IDENT "{" _service_element* "}"
    _service_element: option_stmt | rpc | _empty_stmt
    rpc: "rpc" IDENT "(" STREAM? DOT? full_ident ")" "returns" "(" STREAM? DOT? full_ident ")" (rpc_body | ";")
    rpc_body: "{" (option_stmt | _empty_stmt)* "}"

    constant: string_lit -> string_constant
        | SIGN? INT_LIT -> int_constant
        | SIGN? FLOAT_LIT -> float_constant
        | SIGN? full_ident -> ident_constant
        | aggregate
        | list_constant
    aggregate: "{" aggregate_field* "}"
    aggregate_field: aggregate_key ":" constant (","|";")?
        | aggregate_key aggregate (","|";")?
    aggregate_key: IDENT | "[" full_ident "]"
    list_constant: "[" (constant ("," constant)*)? "]"

    string_lit: STRING+
    full_ident: IDENT ("." IDENT)*

    _empty_stmt: ";"

    STREAM: "stream"
    DOT: "."
    SIGN: "-" | "+"
    IDENT: /[A-Za-z_][A-Za-z0-9_]*/
    INT_LIT: /0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*/
    FLOAT_LIT.2: /([0-9]+\.[0-9]*([eE][+-]?[0-9]+)?|\.[0-9]+([eE][+-]?[0-9]+)?|[0-9]+[eE][+-]?[0-9]+)/
    STRING: /"(\\.|[^"\\\n])*"|'(\\.|[^'\\\n])*'/
    LINE_COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
"""

parser = Lark(
    grammar,
    start='start',
    parser='lalr',
    propagate_positions=True
)


# Transformer to attach line numbers to declaration nodes
class AttachLineNumbers(Transformer):
    def _with_line(self, data, items):
        # The first IDENT token is the declared name
        for item in items:
            if hasattr(item, 'type') and item.type == 'IDENT':
                line = getattr(item, 'line', None)
                break
        else:
            line = None
        node = self.__default__(data, items, None)
        if line is not None:
            node.line = line
        return node

    def field(self, items):
        return self._with_line('field', items)

    def map_field(self, items):
        return self._with_line('map_field', items)

    def message_def(self, items):
        return self._with_line('message_def', items)

    def enum_def(self, items):
        return self._with_line('enum_def', items)


def parse_proto(text):
    tree = parser.parse(text)
    tree = AttachLineNumbers().transform(tree)
    return tree
