"""Placeholder substitution for email templates.

``{{ name }}`` and dotted ``{{ customer.name }}`` placeholders are looked up
in a nested mapping. Anything that cannot be resolved is left untouched in the
output and reported back so callers can warn before sending.
"""
import html
import re
from typing import Any

PLACEHOLDER_RE = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")

_MISSING = object()

def resolve_path(variables: dict[str, Any], path: str) -> Any:
    current: Any = variables
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current

def render(text: str, variables: dict[str, Any], *, escape: bool, unresolved: list[str]) -> str:
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        value = resolve_path(variables, name)
        if value is _MISSING or value is None:
            if name not in unresolved:
                unresolved.append(name)
            return match.group(0)
        value = str(value)
        return html.escape(value) if escape else value

    return PLACEHOLDER_RE.sub(substitute, text or "")

def render_template(subject: str, html_body: str, variables: dict[str, Any]) -> dict:
    unresolved: list[str] = []
    rendered_subject = render(subject, variables, escape=False, unresolved=unresolved)
    rendered_html = render(html_body, variables, escape=True, unresolved=unresolved)
    return {"subject": rendered_subject, "html": rendered_html, "unresolved_variables": unresolved}
