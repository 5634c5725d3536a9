"""
Command line tests for proto_defaulter.py.
"""
import os

import pytest

import proto_defaulter
from tests.test_utils import proto_path, write_proto


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for name in ("PD_OUTPUT_DIR", "PD_API_VERSION_EXPR", "PD_DEFAULT_OPTION", "PD_PLUGINS", "PD_VERBOSE"):
        monkeypatch.delenv(name, raising=False)


def read(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def test_writes_one_file_per_input(temp_dir, capsys):
    proto_defaulter.main([proto_path("rbac.proto"), proto_path("check.proto"), "--output", temp_dir])
    assert sorted(os.listdir(temp_dir)) == ["check.defaults.pb.go", "rbac.defaults.pb.go"]
    out = capsys.readouterr().out
    assert "Default generation completed successfully." in out
    assert "\tc.Interval = 60\n" in read(os.path.join(temp_dir, "check.defaults.pb.go"))


def test_files_without_messages_are_skipped(temp_dir):
    proto_defaulter.main([proto_path("no_messages.proto"), "-o", temp_dir])
    assert os.listdir(temp_dir) == []


def test_stdout_mode(capsys):
    proto_defaulter.main([proto_path("check.proto"), "--stdout"])
    out = capsys.readouterr().out
    assert out.startswith("// Code generated by protoc-gen-defaulter. DO NOT EDIT.\n")
    assert "func (c *Check) Default() {" in out
    assert "completed" not in out


def test_api_version_and_default_option_flags(temp_dir, capsys):
    path = write_proto(temp_dir, "res.proto", '''
    syntax = "proto3";
    message Res {
        string metadata = 1;
        string name = 2 [(my.default) = "custom"];
        string other = 3 [(sensuproto.default) = "ignored"];
    }
    ''')
    proto_defaulter.main([path, "--stdout", "--api-version-expr", '"res/v1"', "--default-option", "(my.default)"])
    out = capsys.readouterr().out
    assert '\tr.ApiVersion = "res/v1"\n' in out
    assert '\tr.Name = "custom"\n' in out
    assert "r.Other" not in out


def test_environment_overrides(temp_dir, monkeypatch, capsys):
    out_dir = os.path.join(temp_dir, "env_out")
    monkeypatch.setenv("PD_OUTPUT_DIR", out_dir)
    monkeypatch.setenv("PD_API_VERSION_EXPR", "Version()")
    proto_defaulter.main([proto_path("rbac.proto"), "--output", os.path.join(temp_dir, "ignored")])
    content = read(os.path.join(out_dir, "rbac.defaults.pb.go"))
    assert "\tr.ApiVersion = Version()\n" in content
    assert not os.path.exists(os.path.join(temp_dir, "ignored"))


def test_proto_path_flag(temp_dir, capsys):
    include_dir = os.path.join(temp_dir, "include")
    os.makedirs(include_dir)
    write_proto(include_dir, "levels.proto", 'syntax = "proto3";\npackage levels;\nenum Level { LEVEL_UNKNOWN = 0; }\n')
    main_path = write_proto(temp_dir, "job.proto", '''
    syntax = "proto3";
    import "levels.proto";
    message Job { levels.Level level = 1 [(sensuproto.default) = "levels.Level_LEVEL_UNKNOWN"]; }
    ''')
    proto_defaulter.main([main_path, "--stdout", "-I", include_dir])
    assert "\tj.Level = levels.Level_LEVEL_UNKNOWN\n" in capsys.readouterr().out


def test_missing_input_exits_with_error(temp_dir, capsys):
    with pytest.raises(SystemExit) as exc:
        proto_defaulter.main([os.path.join(temp_dir, "nope.proto"), "-o", temp_dir])
    assert exc.value.code == 1
    assert "does not exist" in capsys.readouterr().out


def test_invalid_input_still_generates_valid_files(temp_dir, capsys):
    with pytest.raises(SystemExit) as exc:
        proto_defaulter.main([proto_path("invalid.proto"), proto_path("check.proto"), "-o", temp_dir])
    assert exc.value.code == 1
    assert os.listdir(temp_dir) == ["check.defaults.pb.go"]
    out = capsys.readouterr().out
    assert "Failed to parse" in out
    assert "completed with errors" in out


def test_unknown_plugin_is_rejected(temp_dir):
    with pytest.raises(SystemExit) as exc:
        proto_defaulter.main([proto_path("check.proto"), "-o", temp_dir, "--plugins", "nope"])
    assert exc.value.code == 2


def test_output_or_stdout_required():
    with pytest.raises(SystemExit) as exc:
        proto_defaulter.main([proto_path("check.proto")])
    assert exc.value.code == 2


def test_verbose_flag_from_environment(temp_dir, monkeypatch, capsys):
    monkeypatch.setenv("PD_VERBOSE", "1")
    proto_defaulter.main([proto_path("policy.proto"), "-o", temp_dir])
    assert "[DEBUG]" in capsys.readouterr().out
    monkeypatch.setenv("PD_VERBOSE", "0")
    proto_defaulter.main([proto_path("policy.proto"), "-o", temp_dir, "-v"])
    assert "[DEBUG]" not in capsys.readouterr().out


def test_unreadable_input_exits_with_error(temp_dir, capsys):
    path = os.path.join(temp_dir, "latin1.proto")
    with open(path, "wb") as f:
        f.write(b'syntax = "proto3";\nmessage Bad { string name = 1; } // \xff\n')
    with pytest.raises(SystemExit) as exc:
        proto_defaulter.main([path, "-o", temp_dir])
    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert f"Error: Failed to read '{path}'" in out
    assert "completed with errors" in out


def test_broken_import_fails_the_run_once(temp_dir, capsys):
    write_proto(temp_dir, "broken.proto", 'syntax = "proto3";\nmessage Broken {\n')
    first = write_proto(temp_dir, "first.proto", '''
    syntax = "proto3";
    import "broken.proto";
    message First { string name = 1 [(sensuproto.default) = "first"]; }
    ''')
    second = write_proto(temp_dir, "second.proto", '''
    syntax = "proto3";
    import "broken.proto";
    message Second { string name = 1; }
    ''')
    out_dir = os.path.join(temp_dir, "out")
    with pytest.raises(SystemExit) as exc:
        proto_defaulter.main([first, second, "-o", out_dir])
    assert exc.value.code == 1
    assert sorted(os.listdir(out_dir)) == ["first.defaults.pb.go", "second.defaults.pb.go"]
    out = capsys.readouterr().out
    assert out.count("Failed to parse") == 1
    assert "completed with errors" in out
    assert "completed successfully" not in out
