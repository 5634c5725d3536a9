import os
import random
import string
import sys

# Add the parent directory to the path so we can import the modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from proto_loader import build_schema_from_lark_tree
from proto_parser import parse_proto

PROTO_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "proto")


def generate_random_name(length=8):
    """Generate a random name with the specified length."""
    return ''.join(random.choice(string.ascii_letters) for _ in range(length))


def proto_path(name):
    """Path of a .proto fixture."""
    return os.path.join(PROTO_DIR, name)


def schema_from_text(text, source_file="inline.proto"):
    """Parse .proto text and build a SchemaFile without loading imports."""
    tree = parse_proto(text)
    return build_schema_from_lark_tree(tree, source_file)


def write_proto(directory, name, text):
    """Write a .proto file into directory and return its path."""
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path
