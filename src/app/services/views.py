"""
View rendering: Jinja2 templates + redirects.

Handlers pick a view name and a context mapping; every response goes
through render() or redirect() so the outcome is explicit on each branch.

Stored text is already entity-escaped by the validation pipeline, so
templates print it with `|safe`; escaping it again would grow on each save.
"""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

# Jinja2 templates: src/app/templates
TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
jinja_templates = Jinja2Templates(directory=TEMPLATES_DIR)


def render(
    request: Request,
    view: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    """
    Render a view.

    Args:
        request: current request
        view: template name without extension (e.g. "book_list")
        context: named values for the template
        status_code: HTTP status

    Returns:
        TemplateResponse
    """
    return jinja_templates.TemplateResponse(
        request,
        f"{view}.html",
        context or {},
        status_code=status_code,
    )


def redirect(url: str) -> RedirectResponse:
    """303 See Other: after a POST the browser follows with GET."""
    return RedirectResponse(url=url, status_code=303)
