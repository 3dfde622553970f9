"""
Read-only list and detail views over the projects API.

Views keep their own state (items, paging, loading flag, error) and can be
closed; a response that arrives after ``close()`` or after a newer load was
started is dropped instead of overwriting the state.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from client.api import ApiError, ApiService, SessionEndedError
from client.config import ASSET_BASE_URL

logger = logging.getLogger(__name__)

LINK_FIELDS = (
    ("videoLink", "Video"),
    ("flowFileLink", "Flow file"),
    ("deployedLink", "Live demo"),
    ("instructionDocumentLink", "Instructions"),
    ("linkedProfile", "Profile"),
)


def truncate_description(description: str, word_limit: int = 20) -> str:
    words = description.split(" ")
    if len(words) <= word_limit:
        return description
    return " ".join(words[:word_limit]) + "..."


def image_url(project: dict, asset_base: str = "") -> Optional[str]:
    url = (project.get("backgroundImage") or {}).get("publicUrl")
    return f"{asset_base}{url}" if url else None


@dataclass
class LinkButton:
    label: str
    url: str


def link_buttons(project: dict) -> list[LinkButton]:
    return [LinkButton(label, project[key]) for key, label in LINK_FIELDS if project.get(key)]


@dataclass
class ProjectCard:
    id: str
    title: str
    author: str
    excerpt: str
    tool_tags: list[str]
    category_tags: list[str]
    overflow: int
    links: list[LinkButton]
    image_url: Optional[str]
    rating: int

    @classmethod
    def from_project(
        cls,
        project: dict,
        asset_base: str = "",
        word_limit: int = 30,
        max_tools: int = 2,
        max_categories: int = 1,
    ) -> "ProjectCard":
        tools = project.get("tools") or []
        categories = project.get("categories") or []
        overflow = max(len(tools) - max_tools, 0) + max(len(categories) - max_categories, 0)
        return cls(
            id=project["id"],
            title=project.get("projectName", ""),
            author=project.get("name", ""),
            excerpt=truncate_description(project.get("projectDescription", ""), word_limit),
            tool_tags=tools[:max_tools],
            category_tags=categories[:max_categories],
            overflow=overflow,
            links=link_buttons(project),
            image_url=image_url(project, asset_base),
            rating=project.get("rating", 0),
        )


@dataclass
class ProjectDetail:
    id: str
    title: str
    author: str
    description: str
    tools: list[str]
    categories: list[str]
    links: list[LinkButton]
    image_url: Optional[str]
    rating: int
    status: str
    owner_email: Optional[str] = None
    published_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_project(cls, project: dict, asset_base: str = "") -> "ProjectDetail":
        owner = project.get("createdBy") or {}
        return cls(
            id=project["id"],
            title=project.get("projectName", ""),
            author=project.get("name", ""),
            description=project.get("projectDescription", ""),
            tools=list(project.get("tools") or []),
            categories=list(project.get("categories") or []),
            links=link_buttons(project),
            image_url=image_url(project, asset_base),
            rating=project.get("rating", 0),
            status=project.get("status", "published"),
            owner_email=owner.get("email"),
            published_at=project.get("publishedAt"),
            updated_at=project.get("updatedAt"),
        )


class _View:
    def __init__(self, api: ApiService, asset_base: str = ASSET_BASE_URL):
        self.api = api
        self.asset_base = asset_base
        self.loading = False
        self.error: Optional[str] = None
        self.session_ended = False
        self.closed = False
        self._generation = 0

    def close(self) -> None:
        self.closed = True

    def _begin(self) -> int:
        self._generation += 1
        self.loading = True
        self.error = None
        return self._generation

    def _is_current(self, ticket: int) -> bool:
        if self.closed or ticket != self._generation:
            logger.debug("Discarding stale response for %s", type(self).__name__)
            return False
        return True

    def _fail(self, ticket: int, error: ApiError) -> bool:
        if self._is_current(ticket):
            self.loading = False
            self.error = error.message
            self.session_ended = isinstance(error, SessionEndedError)
        return False


class ProjectListView(_View):
    """Paginated card grid; the admin variant lists every project and can delete."""

    def __init__(
        self,
        api: ApiService,
        page_size: int = 16,
        status: str = "published",
        admin: bool = False,
        category: Optional[str] = None,
        asset_base: str = ASSET_BASE_URL,
    ):
        super().__init__(api, asset_base)
        self.page_size = page_size
        self.status = status
        self.admin = admin
        self.category = category
        self.projects: list[dict] = []
        self.current_page = 1
        self.total_pages = 0
        self.total = 0

    @property
    def cards(self) -> list[ProjectCard]:
        return [ProjectCard.from_project(p, self.asset_base) for p in self.projects]

    def load(self, page: int = 1) -> bool:
        ticket = self._begin()
        try:
            if self.admin:
                body = self.api.my_projects(page=page, limit=self.page_size)
            else:
                body = self.api.list_projects(
                    page=page, limit=self.page_size, category=self.category, status=self.status
                )
        except ApiError as e:
            return self._fail(ticket, e)

        if not self._is_current(ticket):
            return False
        pagination = body.get("pagination", {})
        self.projects = body.get("data", [])
        self.current_page = pagination.get("current", page)
        self.total_pages = pagination.get("pages", 0)
        self.total = pagination.get("total", len(self.projects))
        self.loading = False
        return True

    def delete(self, project_id: str) -> bool:
        """Delete on the server, then drop the card locally without refetching."""
        if not self.admin:
            raise PermissionError("Only the admin listing can delete projects")
        self.error = None
        try:
            self.api.delete_project(project_id)
        except ApiError as e:
            self.error = f"Failed to delete project: {e.message}"
            self.session_ended = isinstance(e, SessionEndedError)
            return False

        if self.closed:
            return True
        before = len(self.projects)
        self.projects = [p for p in self.projects if p.get("id") != project_id]
        if len(self.projects) < before:
            self.total -= 1
            self.total_pages = math.ceil(self.total / self.page_size)
        return True


class ProjectDetailView(_View):
    def __init__(self, api: ApiService, asset_base: str = ASSET_BASE_URL):
        super().__init__(api, asset_base)
        self.project: Optional[dict] = None

    @property
    def detail(self) -> Optional[ProjectDetail]:
        if self.project is None:
            return None
        return ProjectDetail.from_project(self.project, self.asset_base)

    def load(self, project_id: str) -> bool:
        ticket = self._begin()
        try:
            project = self.api.get_project(project_id)
        except ApiError as e:
            return self._fail(ticket, e)

        if not self._is_current(ticket):
            return False
        self.project = project
        self.loading = False
        return True
