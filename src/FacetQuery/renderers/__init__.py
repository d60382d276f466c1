"""Output renderers for command results.

JSON renderers return plain Python objects ready for ``json.dumps``; console
renderers return printable text.
"""

from __future__ import annotations

from FacetQuery.renderers.console import (
    render_criteria_text,
    render_findings_text,
    render_suggestions_text,
)
from FacetQuery.renderers.json import (
    render_criteria_json,
    render_findings_json,
    render_suggestions_json,
)

__all__ = [
    "render_criteria_json",
    "render_criteria_text",
    "render_findings_json",
    "render_findings_text",
    "render_suggestions_json",
    "render_suggestions_text",
]
