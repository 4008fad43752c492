"""Static site generation with partially hydrated interactive islands.

This package renders a tree of page templates into HTML, expands data-driven
dynamic routes, bundles the client code of interactive partials per page
group, and builds a client-side search index from the rendered output.

Exports
-------
- ``SiteBuilder``: Runs every build stage for a :class:`BuildConfig`.
- ``app``: Cyclopts application behind the ``island-pages`` command.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from island_pages import main
>>> main()  # doctest: +SKIP
>>> from island_pages import app
>>> app.name[0]
'island-pages'
"""

from __future__ import annotations

from .builder import BuildReport, PageFailure, SiteBuilder
from .cli import app, main

__all__ = ["BuildReport", "PageFailure", "SiteBuilder", "app", "main"]
