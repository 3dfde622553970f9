"""
render.py
Renders list and detail views to static HTML with the Jinja templates in
client/templates.
"""
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from client.views import ProjectDetailView, ProjectListView

TEMPLATES = Path(__file__).parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES)),
    autoescape=select_autoescape(["html", "jinja"]),
    trim_blocks=True, lstrip_blocks=True,
)


def render_list(view: ProjectListView, title: str = "AI Agents") -> str:
    template = env.get_template("projects.html.jinja")
    return template.render(
        title=title,
        cards=view.cards,
        admin=view.admin,
        error=view.error,
        current_page=view.current_page,
        total_pages=view.total_pages,
        total=view.total,
    )


def render_detail(view: ProjectDetailView) -> str:
    template = env.get_template("project_detail.html.jinja")
    return template.render(project=view.detail, error=view.error)
