"""Unix-style command handlers over the virtual file system.

The dispatcher splits a command line on whitespace, looks up the handler
for the first token and calls it with the remaining tokens. Handlers never
let file-system or package errors escape: ``CommandDispatcher.run`` turns
them into a failed ``CommandResult`` whose error is prefixed with the
command name, e.g. ``ls: /nope: No such file or directory``.

Flags are found by scanning arguments for tokens that start with ``-``;
there is no option-parsing library involved, and combined flags such as
``-la`` are accepted.
"""

import logging
import re
from typing import Callable
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from models.errors import FileSystemError, NotDirectoryError, PackageError
from models.node import DirectoryEntry
from models.packages import PackageManager
from models.session import TerminalSession

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_COMMAND_NOT_FOUND = 127

_ENV_VAR_PATTERN = re.compile(r"\$(\w+)")
_ENV_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Handler = Callable[[TerminalSession, list[str]], "CommandResult"]

PROCESS_TABLE = "\n".join(
    [
        "PID TTY          TIME CMD",
        "  1 ?        00:00:01 systemd",
        "  2 ?        00:00:00 kthreadd",
        "123 pts/0    00:00:00 bash",
        "456 pts/0    00:00:00 cvj-terminal",
    ]
)

DISK_USAGE = "\n".join(
    [
        "Filesystem     1K-blocks    Used Available Use% Mounted on",
        "/dev/sda1       20971520 8388608  12582912  41% /",
        "tmpfs            2097152       0   2097152   0% /dev/shm",
        "tmpfs            2097152    1024   2096128   1% /run",
    ]
)

MEMORY_USAGE = "\n".join(
    [
        "               total        used        free      shared  buff/cache   available",
        "Mem:         4194304     1048576     2097152           0     1048576     3145728",
        "Swap:        2097152           0     2097152",
    ]
)


class CommandResult(BaseModel):
    """Outcome of one command invocation.

    Args:
        output: Text written to standard output.
        error: Text written to standard error ("" when none).
        exit_code: Process-style exit status, 0 on success.
    """

    output: str = Field(default="", description="Standard output text")
    error: str = Field(default="", description="Standard error text")
    exit_code: int = Field(default=EXIT_SUCCESS, description="Exit status")

    @classmethod
    def success(cls, output: str = "") -> "CommandResult":
        return cls(output=output, exit_code=EXIT_SUCCESS)

    @classmethod
    def failure(cls, error: str, exit_code: int = EXIT_FAILURE) -> "CommandResult":
        return cls(output="", error=error, exit_code=exit_code)

    @property
    def ok(self) -> bool:
        return self.exit_code == EXIT_SUCCESS


def split_flags(args: list[str]) -> tuple[set[str], list[str]]:
    """Separate ``-x`` style flags from operands.

    Combined flags are expanded, so ``["-la", "/tmp"]`` gives
    ``({"l", "a"}, ["/tmp"])``.
    """
    flags: set[str] = set()
    operands: list[str] = []
    for arg in args:
        if arg.startswith("-") and len(arg) > 1:
            flags.update(arg.lstrip("-"))
        else:
            operands.append(arg)
    return flags, operands


def expand_variables(text: str, environment: dict[str, str]) -> str:
    """Replace ``$NAME`` tokens with environment values (absent -> "")."""
    return _ENV_VAR_PATTERN.sub(lambda match: environment.get(match.group(1), ""), text)


def format_long_entry(entry: DirectoryEntry, username: str) -> str:
    """Render an ``ls -l`` row: permissions, links, owner, group, size, date, name."""
    stamp = entry.modified.strftime("%Y-%m-%d %H:%M")
    return (
        f"{entry.permissions} 1 {username} {username} "
        f"{entry.size:>8} {stamp} {entry.name}"
    )


class CommandDispatcher:
    """Stateless command interpreter.

    All per-session state (cursor, environment, user) lives on the
    ``TerminalSession`` passed to ``execute``; a single dispatcher can serve
    any number of sessions.

    Example:
        >>> dispatcher = CommandDispatcher()
        >>> dispatcher.execute(session, "mkdir /tmp/foo").exit_code
        0
        >>> "foo" in dispatcher.execute(session, "ls /tmp").output
        True
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {
            "ls": self.ls,
            "pwd": self.pwd,
            "cd": self.cd,
            "cat": self.cat,
            "echo": self.echo,
            "mkdir": self.mkdir,
            "rm": self.rm,
            "touch": self.touch,
            "grep": self.grep,
            "wget": self.wget,
            "apt": self.apt,
            "apt-get": self.apt,
            "unzip": self.unzip,
            "git": self.git,
            "env": self.env,
            "export": self.export,
            "whoami": self.whoami,
            "id": self.id,
            "ps": self.ps,
            "df": self.df,
            "free": self.free,
            "uname": self.uname,
            "help": self.help,
        }

    @property
    def commands(self) -> list[str]:
        """Names of all supported commands."""
        return sorted(self._handlers)

    def execute(self, session: TerminalSession, line: str) -> CommandResult:
        """Run one command line.

        Args:
            session: Session whose cursor and environment the command uses.
            line: Raw command line; split on whitespace.

        Returns:
            The command result. An empty line is a no-op success.
        """
        argv = line.split()
        if not argv:
            return CommandResult.success()
        return self.run(session, argv)

    def run(self, session: TerminalSession, argv: list[str]) -> CommandResult:
        """Run an already-split command.

        Unknown commands exit with 127. File-system and package errors are
        converted into failed results and never propagate.
        """
        command, args = argv[0], argv[1:]
        handler = self._handlers.get(command)
        if handler is None:
            return CommandResult.failure(
                f"{command}: command not found", exit_code=EXIT_COMMAND_NOT_FOUND
            )

        logger.debug(f"[{session.session_id}] {command} {args}")
        try:
            return handler(session, args)
        except (FileSystemError, PackageError) as e:
            return CommandResult.failure(f"{command}: {e}")

    # ===== Navigation =====

    def ls(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """List a directory: ``ls [-l] [-a] [path]``."""
        flags, paths = split_flags(args)
        target = paths[0] if paths else None
        filesystem = session.filesystem

        try:
            entries = filesystem.list_directory(target)
        except NotDirectoryError:
            shown = target if target is not None else filesystem.get_current_directory()
            entry = filesystem.get_node(shown).to_entry()
            entries = [entry.model_copy(update={"name": shown})]

        if "a" not in flags:
            entries = [entry for entry in entries if not entry.name.startswith(".")]

        if "l" in flags:
            lines = [format_long_entry(entry, session.username) for entry in entries]
            return CommandResult.success("\n".join(lines))
        return CommandResult.success("  ".join(entry.name for entry in entries))

    def pwd(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success(session.filesystem.get_current_directory())

    def cd(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Change directory; no argument means ``$HOME``.

        The target is not checked for existence unless the file system was
        built with ``strict_cd``.
        """
        path = args[0] if args else session.home
        if path == "~" or path.startswith("~/"):
            path = session.home + path[1:]

        new_path = session.filesystem.change_directory(path)
        session.set_env("PWD", new_path)
        return CommandResult.success()

    # ===== Files =====

    def cat(self, session: TerminalSession, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult.failure("cat: missing file operand")

        contents = [session.filesystem.read_text_file(path) for path in args]
        return CommandResult.success("\n".join(contents))

    def echo(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success(expand_variables(" ".join(args), session.environment))

    def mkdir(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Create directories: ``mkdir [-p] <dir...>``.

        With ``-p`` missing ancestors are created too.
        """
        flags, directories = split_flags(args)
        if not directories:
            return CommandResult.failure("mkdir: missing operand")

        for directory in directories:
            session.filesystem.create_directory(directory, parents="p" in flags)
        return CommandResult.success()

    def rm(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Remove entries: ``rm [-r] [-f] <path...>``.

        ``-r`` removes directories with their contents. ``-f`` silences
        every error and forces exit 0, but does not delete a non-empty
        directory on its own: without ``-r`` that directory stays in place.
        """
        flags, paths = split_flags(args)
        recursive = "r" in flags or "R" in flags
        force = "f" in flags
        if not paths:
            return CommandResult.failure("rm: missing operand")

        errors = []
        for path in paths:
            try:
                if recursive:
                    session.filesystem.delete_tree(path)
                else:
                    session.filesystem.delete_entry(path)
            except FileSystemError as e:
                if force:
                    logger.warning(f"rm -f suppressed error: {e}")
                    continue
                errors.append(f"rm: {e}")

        if errors:
            return CommandResult.failure("\n".join(errors))
        return CommandResult.success()

    def touch(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Create empty files; existing files are left untouched."""
        if not args:
            return CommandResult.failure("touch: missing file operand")

        for path in args:
            if not session.filesystem.exists(path):
                session.filesystem.write_file(path, b"")
        return CommandResult.success()

    def grep(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Print matching lines: ``grep [-i] [-v] <pattern> <file...>``.

        Exits 0 when at least one line matched, 1 when none did and 2 on
        usage errors or an invalid pattern.
        """
        flags: set[str] = set()
        while args and args[0].startswith("-") and len(args[0]) > 1:
            flags.update(args[0].lstrip("-"))
            args = args[1:]
        if len(args) < 2:
            return CommandResult.failure(
                "grep: usage: grep [-i] [-v] pattern file...", exit_code=EXIT_USAGE
            )

        pattern, files = args[0], args[1:]
        try:
            regex = re.compile(pattern, re.IGNORECASE if "i" in flags else 0)
        except re.error as e:
            return CommandResult.failure(f"grep: invalid pattern: {e}", exit_code=EXIT_USAGE)

        matches = []
        for filename in files:
            for line in session.filesystem.read_text_file(filename).split("\n"):
                if bool(regex.search(line)) != ("v" in flags):
                    matches.append(f"{filename}:{line}" if len(files) > 1 else line)

        if not matches:
            return CommandResult(output="", exit_code=EXIT_FAILURE)
        return CommandResult.success("\n".join(matches))

    # ===== Network and archives =====

    def wget(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Download a URL: ``wget <url> [-O name]`` (also ``-O=name``, ``-Oname``)."""
        url = None
        output_name = None
        index = 0
        while index < len(args):
            arg = args[index]
            if arg == "-O":
                if index + 1 >= len(args):
                    return CommandResult.failure("wget: option requires an argument -- 'O'")
                output_name = args[index + 1]
                index += 2
                continue
            if arg.startswith("-O"):
                output_name = arg[2:].lstrip("=")
            elif not arg.startswith("-") and url is None:
                url = arg
            index += 1

        if url is None:
            return CommandResult.failure("wget: missing URL")

        filename = output_name or urlsplit(url).path.rsplit("/", 1)[-1] or "index.html"
        size = session.filesystem.download_from_url(url, filename)
        return CommandResult.success(f"'{filename}' saved [{size} bytes]")

    def unzip(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Extract an archive: ``unzip <archive> [-d dir]`` (default: current directory)."""
        archive = None
        target = session.filesystem.get_current_directory()
        index = 0
        while index < len(args):
            if args[index] == "-d":
                if index + 1 >= len(args):
                    return CommandResult.failure("unzip: option -d requires a directory")
                target = args[index + 1]
                index += 2
                continue
            if archive is None and not args[index].startswith("-"):
                archive = args[index]
            index += 1

        if archive is None:
            return CommandResult.failure("unzip: missing archive operand")

        lines = [f"Archive:  {archive}"]
        for path in session.filesystem.extract_archive(archive, target):
            action = "creating" if session.filesystem.get_node(path).is_directory else "inflating"
            lines.append(f"{action:>10}: {path}")
        return CommandResult.success("\n".join(lines))

    def git(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Mock ``git clone <url> [dir]``: creates a directory with .git and README.md."""
        if not args or args[0] != "clone":
            subcommand = args[0] if args else ""
            return CommandResult.failure(f"git: '{subcommand}' is not a supported git command")
        if len(args) < 2:
            return CommandResult.failure("git clone: missing repository URL")

        url = args[1]
        target = args[2] if len(args) > 2 else url.rstrip("/").rsplit("/", 1)[-1]
        target = target.removesuffix(".git") or "repo"

        filesystem = session.filesystem
        filesystem.create_directory(target)
        filesystem.create_directory(f"{target}/.git")
        filesystem.write_text_file(f"{target}/README.md", f"# {target}\n\nCloned from {url}")
        return CommandResult.success(f"Cloning into '{target}'...\nDone.")

    # ===== Packages =====

    def apt(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Simulated package manager front end.

        Subcommands: ``update``, ``install <pkg...>``, ``remove <pkg...>``,
        ``search <term>``, ``list [--installed]``, ``show <pkg>``.
        """
        if not args:
            return CommandResult.failure("apt: missing subcommand")

        subcommand, names = args[0], args[1:]
        packages = PackageManager(session.filesystem)

        if subcommand == "update":
            lines = [
                f"Hit:{number} {repository.url} {repository.name} InRelease"
                for number, repository in enumerate(packages.repositories, start=1)
            ]
            lines += ["Reading package lists... Done", "Building dependency tree... Done"]
            return CommandResult.success("\n".join(lines))

        if subcommand == "install":
            if not names:
                return CommandResult.failure("apt install: missing package names")
            for name in names:
                packages.install_package(name)
            return CommandResult.success(
                f"Installing {', '.join(names)}... (simulated, stubs written to /usr/bin)\nDone."
            )

        if subcommand == "remove":
            if not names:
                return CommandResult.failure("apt remove: missing package names")
            for name in names:
                packages.remove_package(name)
            return CommandResult.success(f"Removing {', '.join(names)}...\nDone.")

        if subcommand == "search":
            if not names:
                return CommandResult.failure("apt search: missing search term")
            return CommandResult.success(
                f"Searching for {' '.join(names)}...\nFound matching packages in repository."
            )

        if subcommand == "list":
            if "--installed" in names:
                lines = [
                    f"{entry.name}/{entry.version} [installed]"
                    for entry in packages.list_installed()
                ]
            else:
                lines = [
                    f"{package.name}/{package.version}"
                    + (" [installed]" if packages.is_installed(package.name) else "")
                    for package in packages.all_packages()
                ]
            return CommandResult.success("\n".join(lines))

        if subcommand == "show":
            if not names:
                return CommandResult.failure("apt show: missing package name")
            package = packages.package_info(names[0])
            status = "installed" if packages.is_installed(package.name) else "not installed"
            dependencies = ", ".join(package.dependencies) or "none"
            return CommandResult.success(
                f"Package: {package.name}\n"
                f"Version: {package.version}\n"
                f"Status: {status}\n"
                f"Size: {package.size / 1024 / 1024:.2f} MB\n"
                f"Description: {package.description}\n"
                f"Dependencies: {dependencies}"
            )

        return CommandResult.failure(f"apt: unknown subcommand '{subcommand}'")

    # ===== Environment and identity =====

    def env(self, session: TerminalSession, args: list[str]) -> CommandResult:
        lines = [f"{name}={value}" for name, value in session.environment.items()]
        return CommandResult.success("\n".join(lines))

    def export(self, session: TerminalSession, args: list[str]) -> CommandResult:
        """Set variables: ``export NAME=value...`` (bare ``NAME`` defines it empty)."""
        for assignment in args:
            name, sep, value = assignment.partition("=")
            if not _ENV_NAME_PATTERN.match(name):
                return CommandResult.failure(f"export: `{assignment}': not a valid identifier")
            session.set_env(name, value if sep else session.environment.get(name, ""))
        return CommandResult.success()

    def whoami(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success(session.username)

    def id(self, session: TerminalSession, args: list[str]) -> CommandResult:
        user = session.username
        return CommandResult.success(
            f"uid=1000({user}) gid=1000({user}) groups=1000({user}),27(sudo)"
        )

    # Canned system reports

    def ps(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success(PROCESS_TABLE)

    def df(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success(DISK_USAGE)

    def free(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success(MEMORY_USAGE)

    def uname(self, session: TerminalSession, args: list[str]) -> CommandResult:
        flags, _ = split_flags(args)
        if "a" in flags:
            return CommandResult.success(
                f"Linux {session.hostname} 6.6.15-amd64 #1 SMP PREEMPT_DYNAMIC x86_64 GNU/Linux"
            )
        return CommandResult.success("Linux")

    def help(self, session: TerminalSession, args: list[str]) -> CommandResult:
        return CommandResult.success("Available commands: " + " ".join(self.commands))
