"""
Generation driver.
Holds an ordered list of generation passes (plugins), owns the output buffer for the file being
generated and supplies the naming context the passes share.

A plugin provides:
    name() -> str                 symbolic name used to select it
    init(generator) -> None       called once, before any generation
    generate(schema_file) -> None appends its text to the generator's buffer
"""
import os
from typing import Callable, List, Optional

from generators.code_writer import CodeWriter
from generators.defaulter import DEFAULT_OPTION, DefaulterPlugin
from generators.generator_utils import go_field_name, go_package_name
from schema_model import SchemaField, SchemaFile, SchemaMessage

DEFAULT_API_VERSION_EXPR = "SchemeGroupVersion.GroupVersionString()"
GENERATOR_NAME = "protoc-gen-defaulter"
OUTPUT_SUFFIX = ".defaults.pb.go"

# Available generation passes, in the order they run
PLUGINS: List[Callable] = [
    DefaulterPlugin,
]


def plugin_names() -> List[str]:
    return [factory().name() for factory in PLUGINS]


def plugins_by_name(names: List[str]) -> list:
    """Instantiate the named plugins, keeping the order of PLUGINS."""
    available = {factory().name(): factory for factory in PLUGINS}
    for name in names:
        if name not in available:
            raise ValueError(f"Unknown plugin '{name}' (choose from {', '.join(available)})")
    return [factory() for name, factory in available.items() if name in names]


class Generator:
    def __init__(self, plugins: Optional[list] = None, api_version_expr: str = DEFAULT_API_VERSION_EXPR,
                 default_option: str = DEFAULT_OPTION, verbose: bool = False):
        """
        Args:
            plugins: Generation passes, run in the given order (default: every pass in PLUGINS)
            api_version_expr: Go expression assigned to ApiVersion for messages with metadata
            default_option: Option key holding a field's declared default
            verbose: Whether to print debug information
        """
        self.plugins = plugins if plugins is not None else [factory() for factory in PLUGINS]
        self.api_version_expr = api_version_expr
        self.default_option = default_option
        self.verbose = verbose
        self.writer = CodeWriter()
        for plugin in self.plugins:
            plugin.init(self)

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}")

    # --- Output buffer ---
    def p(self, *parts) -> None:
        self.writer.p(*parts)

    def indent(self) -> None:
        self.writer.indent()

    def outdent(self) -> None:
        self.writer.outdent()

    def block(self, opening: str, closing: str = "}"):
        return self.writer.block(opening, closing)

    # --- Naming context ---
    def get_field_name(self, message: SchemaMessage, field: SchemaField) -> str:
        return go_field_name(message, field)

    def output_file_name(self, schema_file: SchemaFile) -> str:
        base = os.path.splitext(os.path.basename(schema_file.file))[0]
        return base + OUTPUT_SUFFIX

    # --- Generation ---
    def generate_file(self, schema_file: SchemaFile) -> str:
        """Run every plugin over one schema file and return the generated source."""
        self.writer = CodeWriter()
        self.p(f"// Code generated by {GENERATOR_NAME}. DO NOT EDIT.")
        self.p(f"// source: {os.path.basename(schema_file.file)}")
        self.p()
        self.p(f"package {go_package_name(schema_file)}")
        for plugin in self.plugins:
            self.debug_print(f"Running plugin '{plugin.name()}' on {schema_file.file}")
            plugin.generate(schema_file)
        return self.writer.getvalue()

    def write_file(self, schema_file: SchemaFile, output_dir: str) -> str:
        """Generate the source for a schema file into output_dir and return the written path."""
        content = self.generate_file(schema_file)
        os.makedirs(output_dir, exist_ok=True)
        out_path = os.path.join(output_dir, self.output_file_name(schema_file))
        with open(out_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        return out_path


def emit_defaults_method(message: SchemaMessage, api_version_expr: Optional[str] = None,
                         default_option: str = DEFAULT_OPTION) -> str:
    """Return the Default() method text for a single message."""
    plugin = DefaulterPlugin()
    g = Generator([plugin], api_version_expr or DEFAULT_API_VERSION_EXPR, default_option)
    plugin.generate_message(message)
    return g.writer.getvalue()
