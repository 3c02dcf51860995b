"""
App layer: HTML server (FastAPI + Jinja2).

Roles:
- routes: one controller per catalog resource
- services: validation pipeline, form options, view rendering
- templates/: Jinja2 views selected by the controllers
"""
