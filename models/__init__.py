"""VTS data models package.

This package contains the in-memory file system (path resolution, node
store, cursor-aware facade), the simulated package manager, the terminal
session context and the command dispatcher that ties them together.
"""

from models.commands import CommandDispatcher, CommandResult
from models.errors import FileSystemError, PackageError
from models.filesystem import AncestorPolicy, FileSystem
from models.node import DirectoryEntry, FileNode, NodeType
from models.packages import InstalledPackage, Package, PackageManager
from models.session import TerminalSession
from models.store import JsonFileStore, MemoryFileStore, VirtualFileStore

__all__ = [
    "AncestorPolicy",
    "CommandDispatcher",
    "CommandResult",
    "DirectoryEntry",
    "FileNode",
    "FileSystem",
    "FileSystemError",
    "InstalledPackage",
    "JsonFileStore",
    "MemoryFileStore",
    "NodeType",
    "Package",
    "PackageError",
    "PackageManager",
    "TerminalSession",
    "VirtualFileStore",
]
