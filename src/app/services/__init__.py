"""
Application Services.

Roles:
- validate: sanitize + validate + collect errors for form input
- forms: select/checkbox options with checked flags
- views: Jinja2 rendering and redirects
"""

from .forms import Option, annotate_options
from .validate import FieldError, FieldRule, ValidationResult, run_pipeline
from .views import redirect, render

__all__ = [
    "FieldError",
    "FieldRule",
    "ValidationResult",
    "run_pipeline",
    "Option",
    "annotate_options",
    "redirect",
    "render",
]
