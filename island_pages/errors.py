"""Exception types raised by the island_pages build pipeline."""

from __future__ import annotations

from pathlib import Path


class BuildError(RuntimeError):
    """Base class for failures raised while building a site."""


class CompileError(BuildError):
    """Raised when the compiler collaborator rejects its entry modules.

    Compile failures are fatal: the orchestrator aborts the whole build.
    """


class BundleError(BuildError):
    """Raised when a client bundle cannot be produced."""


class StaticDataError(BuildError):
    """Raised when a page's ``get_static_data`` callable fails.

    Attributes
    ----------
    page : Path
        Compiled page module whose data getter raised.
    """

    def __init__(self, page: Path, cause: BaseException) -> None:
        self.page = page
        msg = f"get_static_data failed for '{page}': {cause!r}"
        super().__init__(msg)
        self.__cause__ = cause


__all__ = ["BuildError", "BundleError", "CompileError", "StaticDataError"]
