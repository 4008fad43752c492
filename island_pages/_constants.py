"""Common literal values used across island_pages.

These constants keep artifact filenames and markup markers centralized so the
compiler, the page assembler, the hydration stages, and tests can import the
same values without drifting. Intended for internal use within the
island_pages package.

Examples
--------
>>> from island_pages import _constants
>>> _constants.PARTIAL_PLACEHOLDER_TEMPLATE.format(id="ph_0123456789ab")
'<div data-partial-hydration="ph_0123456789ab"></div>'
>>> _constants.PARTIAL_STRINGS_FILENAME.endswith(".json")
True
"""

PARTIAL_PLACEHOLDER_TEMPLATE = '<div data-partial-hydration="{id}"></div>'
COMMENT_MARKER_TEMPLATE = '<div class="island-comment" hidden="">{text}</div>'

PARTIAL_STRINGS_FILENAME = "string-initial.json"
HYDRATE_PAGES_FILENAME = "pages.json"
PARTIAL_MANIFEST_SUFFIX = ".txt"
CLIENT_SCRIPT_SUFFIX = ".client.js"

DEFAULT_LOADER_RULES: dict[str, str] = {
    ".py": "module",
    ".jinja": "template",
    ".html": "template",
}
