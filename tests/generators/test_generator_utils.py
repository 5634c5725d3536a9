import pytest

from generators.generator_utils import camel_case, camel_case_slice, go_field_name, go_package_name
from schema_model import FieldType, SchemaField, SchemaFile, SchemaMessage


@pytest.mark.parametrize("name,expected", [
    ("namespace", "Namespace"),
    ("api_version", "ApiVersion"),
    ("apiVersion", "ApiVersion"),
    ("_private", "XPrivate"),
    ("x_1y", "X_1Y"),
    ("field2name", "Field2Name"),
    ("Outer_Inner", "Outer_Inner"),
    ("foo__bar", "Foo_Bar"),
    ("", ""),
])
def test_camel_case(name, expected):
    assert camel_case(name) == expected


def test_camel_case_slice():
    assert camel_case_slice(["Rule"]) == "Rule"
    assert camel_case_slice(["Outer", "Inner"]) == "Outer_Inner"
    assert camel_case_slice(["outer", "inner_msg"]) == "OuterInnerMsg"


def test_go_field_name_plain_and_custom():
    msg = SchemaMessage("M", [])
    assert go_field_name(msg, SchemaField("display_name", 1, FieldType.STRING)) == "DisplayName"
    custom = SchemaField("display_name", 1, FieldType.STRING, options={"(gogoproto.customname)": "Title"})
    assert go_field_name(msg, custom) == "Title"


@pytest.mark.parametrize("name", ["size", "string", "reset", "descriptor", "marshal"])
def test_go_field_name_reserved_method_names(name):
    field = SchemaField(name, 1, FieldType.STRING)
    assert go_field_name(None, field) == camel_case(name) + "_"


def test_go_field_name_oneof_member():
    field = SchemaField("cron", 1, FieldType.STRING, oneof="run_schedule")
    assert go_field_name(None, field) == "RunSchedule"


@pytest.mark.parametrize("options,package,file,expected", [
    ({"go_package": "github.com/sensu/sensu-go/api/core/v2;corev2"}, "sensu.core.v2", "x.proto", "corev2"),
    ({"go_package": "github.com/sensu/sensu-go/api/core/v2"}, "sensu.core.v2", "x.proto", "v2"),
    ({}, "sensu.core.v2", "x.proto", "v2"),
    ({}, None, "dir/my-types.proto", "my_types"),
    ({}, None, "2fa.proto", "_2fa"),
])
def test_go_package_name(options, package, file, expected):
    schema = SchemaFile(file, package, [], [], options=options)
    assert go_package_name(schema) == expected
