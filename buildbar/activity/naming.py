"""Helpers for turning store paths into short human-readable names."""

DRV_SUFFIX = ".drv"


def store_path_to_name(path: str) -> str:
    """Return the name part of a store path.

    Store path base names have the form ``<hash>-<name>``; everything after
    the first dash is the name. Base names without a dash are returned as-is.

    Args:
        path: A store path such as ``/nix/store/abc123-hello-2.10``

    Returns:
        The name part, e.g. ``hello-2.10``
    """
    base = path.rstrip("/").rsplit("/", 1)[-1]
    _, dash, name = base.partition("-")
    return name if dash else base


def strip_drv_suffix(name: str) -> str:
    """Remove a trailing ``.drv`` from a derivation name."""
    if name.endswith(DRV_SUFFIX):
        return name[: -len(DRV_SUFFIX)]
    return name


def drv_name(full_name: str) -> str:
    """Return the package name without its version.

    The version starts at the first dash that is followed by something other
    than a letter, so ``hello-2.10`` gives ``hello`` and ``gtk-doc-1.33``
    gives ``gtk-doc``.
    """
    for i, ch in enumerate(full_name):
        if ch == "-" and i + 1 < len(full_name) and not full_name[i + 1].isalpha():
            return full_name[:i]
    return full_name
