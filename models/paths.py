"""Path resolution helpers for the virtual file system.

All functions here are pure: they never touch the store and give the same
answer for the same input.
"""

ROOT = "/"


def resolve_path(current_dir: str, input_path: str) -> str:
    """Resolve a path against the current directory into canonical form.

    Absolute inputs ignore ``current_dir``. Empty and ``.`` segments are
    dropped, ``..`` removes the previous segment (and stops at the root),
    and the result always starts with a single ``/`` with no trailing slash
    except for the root itself.

    Examples:
        >>> resolve_path("/a/b", "../c")
        '/a/c'
        >>> resolve_path("/", "..")
        '/'
        >>> resolve_path("/a", "./b//c/")
        '/a/b/c'

    Args:
        current_dir: Absolute path of the directory relative inputs start from.
        input_path: Absolute or relative path to resolve.

    Returns:
        The canonical absolute path.
    """
    if input_path.startswith("/"):
        segments = input_path.split("/")
    else:
        segments = current_dir.split("/") + input_path.split("/")

    resolved: list[str] = []
    for segment in segments:
        if segment in ("", "."):
            continue
        if segment == "..":
            if resolved:
                resolved.pop()
            continue
        resolved.append(segment)

    return ROOT + "/".join(resolved)


def parent_path(path: str) -> str:
    """Return the parent of a canonical absolute path.

    The root has no parent and yields ``""``; top-level entries yield ``/``.
    """
    if path == ROOT:
        return ""
    parent = path[: path.rfind("/")]
    return parent or ROOT


def base_name(path: str) -> str:
    """Return the last segment of a canonical absolute path (``""`` for root)."""
    return path.rsplit("/", 1)[-1]


def ancestors(path: str) -> list[str]:
    """Return every proper ancestor of ``path``, outermost first.

    ``ancestors("/a/b/c")`` is ``["/", "/a", "/a/b"]``.
    """
    chain: list[str] = []
    current = parent_path(path)
    while current:
        chain.append(current)
        current = parent_path(current)
    return list(reversed(chain))
