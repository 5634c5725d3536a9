#!/usr/bin/env python3
"""
ProtoDefaulter

This script reads .proto schema files and generates Go Default() methods for every message type.
A field's declared default, given with the (sensuproto.default) option, is assigned in the
generated method; messages with a `metadata` field also get their Kind and ApiVersion set.

Usage:
    python proto_defaulter.py <input.proto> [<input.proto> ...] --output <output_dir> [options]

Arguments:
    inputs                  : One or more .proto files
    --output, -o            : Directory where output files will be generated
    --proto-path, -I        : Directory to search for imports (may be repeated)
    --plugins, -p           : Generation passes to run (default: defaulter)
    --api-version-expr      : Go expression assigned to ApiVersion
                              (default: SchemeGroupVersion.GroupVersionString())
    --default-option        : Option holding a field's default (default: (sensuproto.default))
    --stdout                : Print generated code instead of writing files
    --verbose, -v           : Enable verbose output for debugging
    --help, -h              : Show this help message

Environment overrides:
    PD_OUTPUT_DIR, PD_API_VERSION_EXPR, PD_DEFAULT_OPTION, PD_PLUGINS, PD_VERBOSE

Output files are named <input base name>.defaults.pb.go.

Example:
    python proto_defaulter.py rbac.proto --output ./generated
    python proto_defaulter.py rbac.proto -I ./proto -I ./vendor --output ./generated
    python proto_defaulter.py rbac.proto --stdout --api-version-expr '"rbac/v2"'
"""

import argparse
import os
import sys
from typing import List, Optional

from generators.defaulter import DEFAULT_OPTION
from generators.generator import DEFAULT_API_VERSION_EXPR, Generator, plugin_names, plugins_by_name
from proto_loader import ProtoLoader


class DefaultsConverter:
    """
    Loads .proto files and runs the selected generation passes over each of them.
    """

    def __init__(self, input_files: List[str], output_dir: Optional[str], import_paths: Optional[List[str]] = None,
                 plugins: Optional[List[str]] = None, api_version_expr: str = DEFAULT_API_VERSION_EXPR,
                 default_option: str = DEFAULT_OPTION, verbose: bool = False):
        """
        Initialize the converter.

        Args:
            input_files: Paths to the .proto files to generate code for
            output_dir: Directory where output files will be generated (None prints to stdout)
            import_paths: Directories to search for imported .proto files
            plugins: Names of the generation passes to run (default: all)
            api_version_expr: Go expression assigned to ApiVersion
            default_option: Option key holding a field's declared default
            verbose: Whether to print debug information (default: False)
        """
        self.input_files = input_files
        self.output_dir = output_dir
        self.verbose = verbose
        self.loader = ProtoLoader(import_paths, verbose)
        self.generator = Generator(
            plugins_by_name(plugins or plugin_names()),
            api_version_expr=api_version_expr,
            default_option=default_option,
            verbose=verbose,
        )
        self.schemas = []

    def load_input_files(self) -> bool:
        """
        Load every input file.

        Returns:
            bool: True if all files and their imports were loaded, False otherwise
        """
        success = True
        self.schemas = []
        for input_file in self.input_files:
            schema = self.loader.load(input_file)
            if schema is None:
                success = False
                continue
            self.schemas.append(schema)

        for error in self.loader.errors:
            print(error)
        if self.verbose:
            for warning in self.loader.warnings:
                print(f"Warning: {warning}")
        # A failed import is reported but does not stop its importers
        return success and not self.loader.errors

    def generate_output(self) -> bool:
        """
        Generate output for every loaded schema.

        Returns:
            bool: True if generation was successful, False otherwise
        """
        if not self.schemas:
            print("Error: No schemas available. Load input files first.")
            return False

        success = True
        for schema in self.schemas:
            if not schema.messages:
                self.generator.debug_print(f"Skipping {schema.file}: no messages")
                continue
            if self.output_dir is None:
                sys.stdout.write(self.generator.generate_file(schema))
                continue
            try:
                out_path = self.generator.write_file(schema, self.output_dir)
            except OSError as e:
                print(f"Error: Failed to write output for '{schema.file}': {e}")
                success = False
                continue
            print(f"Wrote {out_path}")
        return success


def _split_names(values: List[str]) -> List[str]:
    names = []
    for value in values:
        names.extend(n.strip() for n in value.replace(',', ' ').split() if n.strip())
    return names


def _env_flag(value: str) -> bool:
    return value.strip().lower() not in ('', '0', 'false', 'no')


def parse_arguments(argv: Optional[List[str]] = None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        description="Generate Go Default() methods from .proto schema files",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument('inputs', nargs='+', help='Paths to the .proto files')
    parser.add_argument('--output', '-o', help='Directory where output files will be generated')
    parser.add_argument('--proto-path', '-I', action='append', default=[], dest='proto_paths',
                        help='Directory to search for imports (may be repeated)')
    parser.add_argument('--plugins', '-p', nargs='+', help='Generation passes to run (default: all)')
    parser.add_argument('--api-version-expr', default=DEFAULT_API_VERSION_EXPR,
                        help='Go expression assigned to ApiVersion for messages with metadata')
    parser.add_argument('--default-option', default=DEFAULT_OPTION,
                        help="Option holding a field's declared default")
    parser.add_argument('--stdout', action='store_true', help='Print generated code instead of writing files')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output for debugging')

    args = parser.parse_args(argv)

    if args.plugins:
        args.plugins = _split_names(args.plugins)
        valid_choices = plugin_names()
        for name in args.plugins:
            if name not in valid_choices:
                parser.error(f"argument --plugins/-p: invalid choice: '{name}' (choose from {', '.join(valid_choices)})")

    if not args.stdout and not args.output and 'PD_OUTPUT_DIR' not in os.environ:
        parser.error("one of --output/-o or --stdout is required")

    return args


def main(argv: Optional[List[str]] = None):
    """
    Main entry point of the script.
    """
    args = parse_arguments(argv)

    # Override with environment variables if set
    output_dir = os.environ.get('PD_OUTPUT_DIR', args.output)
    api_version_expr = os.environ.get('PD_API_VERSION_EXPR', args.api_version_expr)
    default_option = os.environ.get('PD_DEFAULT_OPTION', args.default_option)
    plugins = args.plugins
    if 'PD_PLUGINS' in os.environ:
        plugins = _split_names([os.environ['PD_PLUGINS']])
    verbose = args.verbose
    if 'PD_VERBOSE' in os.environ:
        verbose = _env_flag(os.environ['PD_VERBOSE'])

    try:
        converter = DefaultsConverter(
            args.inputs,
            None if args.stdout else output_dir,
            import_paths=args.proto_paths,
            plugins=plugins,
            api_version_expr=api_version_expr,
            default_option=default_option,
            verbose=verbose,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    success = converter.load_input_files()

    if converter.schemas and not converter.generate_output():
        success = False

    if args.stdout:
        if not success:
            sys.exit(1)
        return

    if success:
        print("Default generation completed successfully.")
    else:
        print("Default generation completed with errors.")
        sys.exit(1)


if __name__ == '__main__':
    main()
