"""
readlater-import - idempotent import of bookmark and article exports.

This package reads exports produced by this application (legacy and current
JSON schemas) or by third-party tools (Firefox, Chrome, a reader-mode tool,
Instapaper-style CSV, Pinboard-style JSON) and saves each entry as an article
for one account. Re-running an import never creates duplicates.

Main entry point is the CLI via `readlater-import import` command.

Example:
    $ readlater-import import alice export.json --importer v2
"""

__all__ = [
    "__version__",
    "CanonicalEntry",
    "ImportSession",
    "Importer",
    "RunSummary",
    "SourceFormat",
    "run_import",
]
__version__ = "0.1.0"

from .core.types import CanonicalEntry, ImportSession, RunSummary, SourceFormat
from .runner import Importer, run_import
