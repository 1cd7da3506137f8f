"""Tests for the command dispatcher.

Each test runs real command lines through ``CommandDispatcher.execute``
against a freshly seeded session (see ``tests/fixtures/filesystem.py``).
"""

import httpx
import pytest

from models.commands import (
    EXIT_COMMAND_NOT_FOUND,
    CommandDispatcher,
    CommandResult,
    expand_variables,
    split_flags,
)
from tests.fixtures.filesystem import (
    create_filesystem,
    create_session,
    make_transport,
    make_zip,
)


class TestScenarios:
    """End-to-end command sequences."""

    def test_mkdir_then_ls(self, run):
        assert run("mkdir /tmp/foo").exit_code == 0
        result = run("ls /tmp")
        assert result.exit_code == 0
        assert "foo" in result.output.split()

    def test_touch_then_cat_empty(self, run):
        assert run("touch /tmp/a.txt").exit_code == 0
        result = run("cat /tmp/a.txt")
        assert result.output == ""
        assert result.exit_code == 0

    def test_echo_expands_home(self, run):
        result = run("echo hello $HOME")
        assert result.output == "hello /home/cvj"
        assert result.exit_code == 0

    def test_rm_non_empty_directory(self, run, session):
        run("mkdir /tmp/foo")
        run("touch /tmp/foo/file")

        result = run("rm /tmp/foo")
        assert result.exit_code != 0
        assert "not empty" in result.error

        forced = run("rm -f /tmp/foo")
        assert forced.exit_code == 0
        assert forced.error == ""
        assert session.filesystem.exists("/tmp/foo")
        assert session.filesystem.exists("/tmp/foo/file")

    def test_cd_to_missing_directory_is_lenient(self, run, session):
        result = run("cd /nonexistent")
        assert result.exit_code == 0
        assert run("pwd").output == "/nonexistent"
        assert session.get_env("PWD") == "/nonexistent"


class TestDispatch:
    def test_empty_line_is_noop(self, run):
        assert run("   ") == CommandResult(output="", error="", exit_code=0)

    def test_unknown_command(self, run):
        result = run("frobnicate --now")
        assert result.exit_code == EXIT_COMMAND_NOT_FOUND
        assert result.error == "frobnicate: command not found"

    def test_errors_are_prefixed_with_command(self, run):
        result = run("cat /nope")
        assert result.exit_code == 1
        assert result.output == ""
        assert result.error == "cat: /nope: No such file or directory"

    def test_state_survives_failed_command(self, run):
        run("cd /tmp")
        run("cat missing")
        assert run("pwd").output == "/tmp"

    def test_dispatcher_is_shared_across_sessions(self):
        dispatcher = CommandDispatcher()
        first, second = create_session(), create_session()
        dispatcher.execute(first, "cd /etc")
        assert dispatcher.execute(first, "pwd").output == "/etc"
        assert dispatcher.execute(second, "pwd").output == "/"

    def test_help_lists_commands(self, run):
        output = run("help").output
        for command in ("ls", "cd", "apt", "wget", "unzip"):
            assert command in output


class TestHelpers:
    def test_split_flags_expands_combined(self):
        assert split_flags(["-la", "/tmp"]) == ({"l", "a"}, ["/tmp"])

    def test_split_flags_keeps_lone_dash(self):
        assert split_flags(["-"]) == (set(), ["-"])

    def test_expand_variables_missing_is_empty(self):
        assert expand_variables("a $NOPE b", {}) == "a  b"


class TestLs:
    def test_ls_root(self, run):
        assert run("ls /").output == "bin  etc  home  opt  root  tmp  usr  var"

    def test_ls_defaults_to_cursor(self, run):
        run("cd /etc")
        assert run("ls").output == "os-release  passwd"

    def test_ls_hides_dotfiles_without_a(self, run):
        run("touch /tmp/.hidden")
        run("touch /tmp/shown")
        assert run("ls /tmp").output == "shown"
        assert run("ls -a /tmp").output == ".hidden  shown"

    def test_ls_long_format(self, run):
        run("touch /tmp/x")
        run("mkdir /tmp/d")
        lines = run("ls -l /tmp").output.split("\n")

        assert len(lines) == 2
        fields = lines[0].split()
        assert fields[0] == "drwxr-xr-x"
        assert fields[2:5] == ["cvj", "cvj", "4096"]
        assert fields[-1] == "d"
        assert lines[1].startswith("-rw-r--r-- 1 cvj cvj        0 ")

    def test_ls_combined_flags(self, run):
        run("touch /tmp/.dot")
        output = run("ls -la /tmp").output
        assert output.endswith(" .dot")

    def test_ls_missing_path(self, run):
        result = run("ls /nope")
        assert result.output == ""
        assert result.error == "ls: /nope: No such file or directory"
        assert result.exit_code == 1

    def test_ls_on_file_prints_it(self, run):
        assert run("ls /etc/passwd").output == "/etc/passwd"

    def test_bare_ls_with_cursor_on_file(self, run):
        run("touch /tmp/a.txt")
        run("cd /tmp/a.txt")

        result = run("ls")

        assert result.exit_code == 0
        assert result.output == "/tmp/a.txt"


class TestNavigation:
    def test_cd_without_argument_goes_home(self, run):
        run("cd /tmp")
        run("cd")
        assert run("pwd").output == "/home/cvj"

    def test_cd_tilde(self, run):
        run("cd ~/projects")
        assert run("pwd").output == "/home/cvj/projects"

    def test_cd_relative(self, run):
        run("cd /usr")
        run("cd local/../bin")
        assert run("pwd").output == "/usr/bin"

    def test_strict_cd_reports_error(self):
        session = create_session(create_filesystem(strict_cd=True))
        dispatcher = CommandDispatcher()

        result = dispatcher.execute(session, "cd /nonexistent")

        assert result.exit_code == 1
        assert "No such file or directory" in result.error
        assert dispatcher.execute(session, "pwd").output == "/"


class TestFileCommands:
    def test_cat_joins_with_newline(self, run, session):
        session.filesystem.write_text_file("/tmp/a", "one")
        session.filesystem.write_text_file("/tmp/b", "two")
        assert run("cat /tmp/a /tmp/b").output == "one\ntwo"

    def test_cat_directory_fails(self, run):
        result = run("cat /etc")
        assert result.exit_code == 1
        assert result.error == "cat: /etc: Is a directory"

    def test_cat_without_operand(self, run):
        assert run("cat").error == "cat: missing file operand"

    def test_mkdir_multiple(self, run, session):
        run("mkdir /tmp/a /tmp/b")
        assert session.filesystem.exists("/tmp/a")
        assert session.filesystem.exists("/tmp/b")

    def test_mkdir_p_creates_ancestors(self, run, session):
        assert run("mkdir -p /srv/www/html").exit_code == 0
        assert "www" in run("ls /srv").output
        assert session.filesystem.validate_state() == []

    def test_mkdir_without_p_creates_orphan(self, run, session):
        assert run("mkdir /srv/www").exit_code == 0
        assert session.filesystem.exists("/srv/www")
        assert not session.filesystem.exists("/srv")

    def test_mkdir_over_file_fails(self, run):
        result = run("mkdir /etc/passwd")
        assert result.exit_code == 1
        assert result.error == "mkdir: /etc/passwd: File exists"

    def test_mkdir_without_operand(self, run):
        assert run("mkdir -p").error == "mkdir: missing operand"

    def test_rm_file(self, run, session):
        run("touch /tmp/x")
        assert run("rm /tmp/x").exit_code == 0
        assert not session.filesystem.exists("/tmp/x")

    def test_rm_recursive(self, run, session):
        run("mkdir -p /tmp/tree/sub")
        run("touch /tmp/tree/sub/f")
        assert run("rm -r /tmp/tree").exit_code == 0
        assert not session.filesystem.exists("/tmp/tree")
        assert not session.filesystem.exists("/tmp/tree/sub/f")

    def test_rm_rf_missing_is_silent(self, run):
        result = run("rm -rf /tmp/never")
        assert result.exit_code == 0
        assert result.error == ""

    def test_rm_missing_fails(self, run):
        result = run("rm /tmp/never")
        assert result.exit_code == 1
        assert result.error == "rm: /tmp/never: No such file or directory"

    def test_rm_continues_after_error(self, run, session):
        run("touch /tmp/ok")
        result = run("rm /tmp/never /tmp/ok")
        assert result.exit_code == 1
        assert not session.filesystem.exists("/tmp/ok")

    def test_rm_recursive_root_keeps_tree(self, run, session):
        result = run("rm -r /")

        assert result.exit_code == 1
        assert "Cannot remove root directory" in result.error
        assert session.filesystem.exists("/etc/passwd")
        assert session.filesystem.validate_state() == []

    def test_rm_rf_root_keeps_tree(self, run, session):
        run("rm -rf /")
        assert session.filesystem.exists("/etc/passwd")

    def test_touch_leaves_existing_content(self, run, session):
        session.filesystem.write_text_file("/tmp/keep", "data")
        run("touch /tmp/keep")
        assert session.filesystem.read_text_file("/tmp/keep") == "data"

    def test_touch_relative(self, run, session):
        run("cd /home/cvj")
        run("touch notes.txt")
        assert session.filesystem.exists("/home/cvj/notes.txt")


class TestGrep:
    @pytest.fixture(autouse=True)
    def log_file(self, session):
        session.filesystem.write_text_file(
            "/tmp/log", "INFO start\nERROR disk full\ninfo again\nERROR net down"
        )

    def test_matching_lines(self, run):
        result = run("grep ERROR /tmp/log")
        assert result.output == "ERROR disk full\nERROR net down"
        assert result.exit_code == 0

    def test_regex_pattern(self, run):
        assert run("grep ^info /tmp/log").output == "info again"

    def test_no_match_exits_one(self, run):
        result = run("grep WARN /tmp/log")
        assert result.output == ""
        assert result.exit_code == 1

    def test_ignore_case_and_invert(self, run):
        assert run("grep -i info /tmp/log").output == "INFO start\ninfo again"
        assert run("grep -v ERROR /tmp/log").output == "INFO start\ninfo again"

    def test_invalid_pattern(self, run):
        result = run("grep ( /tmp/log")
        assert result.exit_code == 2
        assert result.error.startswith("grep: invalid pattern")

    def test_usage(self, run):
        assert run("grep ERROR").exit_code == 2

    def test_missing_file(self, run):
        result = run("grep x /tmp/none")
        assert result.exit_code == 1
        assert result.error == "grep: /tmp/none: No such file or directory"


class TestWget:
    def _session(self, routes):
        return create_session(create_filesystem(transport=make_transport(routes)))

    def test_default_name_from_url(self):
        session = self._session(
            {"https://example.com/tools/scan.sh": httpx.Response(200, content=b"#!/bin/sh\n")}
        )
        dispatcher = CommandDispatcher()
        dispatcher.execute(session, "cd /tmp")

        result = dispatcher.execute(session, "wget https://example.com/tools/scan.sh")

        assert result.exit_code == 0
        assert result.output == "'scan.sh' saved [10 bytes]"
        assert session.filesystem.read_file("/tmp/scan.sh") == b"#!/bin/sh\n"

    def test_index_html_for_bare_host(self):
        session = self._session({"https://example.com/": httpx.Response(200, text="<html>")})
        result = CommandDispatcher().execute(session, "wget https://example.com/")
        assert result.output == "'index.html' saved [6 bytes]"
        assert session.filesystem.exists("/index.html")

    @pytest.mark.parametrize("option", ["-O /tmp/out.bin", "-O=/tmp/out.bin", "-O/tmp/out.bin"])
    def test_output_name(self, option):
        session = self._session({"https://example.com/a": httpx.Response(200, content=b"abc")})
        result = CommandDispatcher().execute(session, f"wget https://example.com/a {option}")
        assert result.exit_code == 0
        assert session.filesystem.read_file("/tmp/out.bin") == b"abc"

    def test_http_error(self):
        session = self._session({})
        result = CommandDispatcher().execute(session, "wget https://example.com/missing")
        assert result.exit_code == 1
        assert result.error.startswith("wget: Failed to download https://example.com/missing: HTTP 404")
        assert not session.filesystem.exists("/missing")

    def test_timeout(self):
        session = self._session({"https://slow.example/x": httpx.ConnectTimeout("slow")})
        result = CommandDispatcher().execute(session, "wget https://slow.example/x")
        assert result.exit_code == 1
        assert "timed out" in result.error

    def test_missing_url(self, run):
        assert run("wget").error == "wget: missing URL"


class TestUnzip:
    def test_unzip_into_directory(self, run, session):
        session.filesystem.write_file(
            "/tmp/tool.zip", make_zip({"tool/": None, "tool/run": b"go"})
        )
        run("mkdir /opt/tool")

        result = run("unzip /tmp/tool.zip -d /opt/tool")

        assert result.exit_code == 0
        assert result.output.startswith("Archive:  /tmp/tool.zip")
        assert "  creating: /opt/tool/tool" in result.output
        assert " inflating: /opt/tool/tool/run" in result.output
        assert session.filesystem.read_file("/opt/tool/tool/run") == b"go"

    def test_unzip_defaults_to_cursor(self, run, session):
        session.filesystem.write_file("/tmp/a.zip", make_zip({"x.txt": b"x"}))
        run("cd /home/cvj")
        run("unzip /tmp/a.zip")
        assert session.filesystem.exists("/home/cvj/x.txt")

    def test_unzip_bad_archive(self, run, session):
        session.filesystem.write_text_file("/tmp/bad.zip", "nope")
        result = run("unzip /tmp/bad.zip")
        assert result.exit_code == 1
        assert result.error.startswith("unzip: /tmp/bad.zip: not a zip archive")


class TestGit:
    def test_clone_creates_repository(self, run, session):
        run("cd /home/cvj")
        result = run("git clone https://github.com/example/recon-kit.git")

        assert result.output == "Cloning into 'recon-kit'...\nDone."
        assert session.filesystem.get_node("/home/cvj/recon-kit/.git").is_directory
        readme = session.filesystem.read_text_file("/home/cvj/recon-kit/README.md")
        assert readme == "# recon-kit\n\nCloned from https://github.com/example/recon-kit.git"

    def test_clone_into_named_directory(self, run, session):
        run("git clone https://github.com/example/tool /tmp/mytool")
        assert session.filesystem.exists("/tmp/mytool/README.md")

    def test_unsupported_subcommand(self, run):
        assert run("git push").exit_code == 1


class TestApt:
    def test_update(self, run):
        result = run("apt update")
        assert result.exit_code == 0
        assert "Reading package lists... Done" in result.output

    def test_install_writes_stub(self, run, session):
        result = run("apt install nmap hydra")

        assert result.exit_code == 0
        assert "simulated" in result.output
        stub = session.filesystem.read_text_file("/usr/bin/nmap")
        assert stub.startswith("#!/bin/bash")
        assert "nmap" in stub
        assert session.filesystem.exists("/usr/bin/hydra")

    def test_install_without_names(self, run):
        result = run("apt install")
        assert result.exit_code == 1
        assert result.error == "apt install: missing package names"

    def test_install_invalid_name(self, run):
        result = run("apt install Bad_Name")
        assert result.error == "apt: Unable to locate package Bad_Name"

    def test_apt_get_alias(self, run, session):
        assert run("apt-get install curl").exit_code == 0
        assert session.filesystem.exists("/usr/bin/curl")

    def test_search_is_canned(self, run):
        result = run("apt search anything-at-all")
        assert result.output == (
            "Searching for anything-at-all...\nFound matching packages in repository."
        )

    def test_remove(self, run, session):
        run("apt install nmap")
        assert run("apt remove nmap").exit_code == 0
        assert not session.filesystem.exists("/usr/bin/nmap")

    def test_remove_not_installed(self, run):
        result = run("apt remove nmap")
        assert result.exit_code == 1
        assert result.error == "apt: Package 'nmap' is not installed"

    def test_list_installed(self, run):
        run("apt install nmap")
        assert run("apt list --installed").output == "nmap/7.94 [installed]"

    def test_list_catalogue_marks_installed(self, run):
        run("apt install git")
        lines = run("apt list").output.split("\n")
        assert "git/2.43.0 [installed]" in lines
        assert "nmap/7.94" in lines

    def test_show(self, run):
        output = run("apt show wireshark").output
        assert "Package: wireshark" in output
        assert "Status: not installed" in output
        assert "Dependencies: libpcap" in output

    def test_show_unknown(self, run):
        assert run("apt show nothing-here").error == "apt: Unable to locate package nothing-here"

    def test_unknown_subcommand(self, run):
        assert run("apt upgrade").error == "apt: unknown subcommand 'upgrade'"


class TestEnvironment:
    def test_export_and_echo(self, run):
        assert run("export TARGET=10.0.0.1").exit_code == 0
        assert run("echo scanning $TARGET").output == "scanning 10.0.0.1"

    def test_export_empty_value_clears_variable(self, run):
        run("export FOO=bar")
        run("export FOO=")
        assert run("echo x$FOO").output == "x"

    def test_export_bare_name_keeps_value(self, run):
        run("export FOO=bar")
        run("export FOO")
        assert run("echo $FOO").output == "bar"

    def test_export_invalid_identifier(self, run):
        result = run("export 1BAD=x")
        assert result.exit_code == 1
        assert "not a valid identifier" in result.error

    def test_env_lists_variables(self, run):
        lines = run("env").output.split("\n")
        assert "HOME=/home/cvj" in lines
        assert "USER=cvj" in lines

    def test_whoami(self, run):
        assert run("whoami").output == "cvj"

    def test_uname(self, run):
        assert run("uname").output == "Linux"
        assert run("uname -a").output.startswith("Linux cvj-terminal ")

    def test_id(self, run):
        assert run("id").output == "uid=1000(cvj) gid=1000(cvj) groups=1000(cvj),27(sudo)"


class TestSystemReports:
    def test_ps(self, run):
        lines = run("ps aux").output.split("\n")
        assert lines[0] == "PID TTY          TIME CMD"
        assert "123 pts/0    00:00:00 bash" in lines

    def test_df(self, run):
        result = run("df -h")
        assert result.exit_code == 0
        assert result.output.startswith("Filesystem     1K-blocks")
        assert "/dev/sda1       20971520 8388608  12582912  41% /" in result.output

    def test_free(self, run):
        lines = run("free").output.split("\n")
        assert len(lines) == 3
        assert lines[1].startswith("Mem:         4194304")
        assert lines[2].startswith("Swap:")

    def test_listed_in_help(self, run):
        output = run("help").output
        for name in ("id", "ps", "df", "free"):
            assert f" {name}" in output
