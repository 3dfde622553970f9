"""
Three-step create/edit wizard for a project listing.

Step 1 collects identity fields, step 2 links, image, categories and tools,
step 3 shows a summary and the rating. Only step 3 can submit, and only one
submission may be in flight at a time.
"""
import json
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from typing import Optional

from client.api import ApiError, ApiService, SessionEndedError
from client.config import ASSET_BASE_URL

logger = logging.getLogger(__name__)

FIRST_STEP = 1
LAST_STEP = 3

STEP_TITLES = {
    1: "Basic Information",
    2: "Project Details & Resources",
    3: "Review & Rating",
}

# draft attribute -> multipart field name
FORM_KEYS = {
    "name": "name",
    "project_name": "projectName",
    "project_description": "projectDescription",
    "linked_profile": "linkedProfile",
    "video_link": "videoLink",
    "flow_file_link": "flowFileLink",
    "deployed_link": "deployedLink",
    "instruction_document_link": "instructionDocumentLink",
}


@dataclass
class ProjectDraft:
    name: str = ""
    project_name: str = ""
    project_description: str = ""
    linked_profile: str = ""
    video_link: str = ""
    flow_file_link: str = ""
    deployed_link: str = ""
    instruction_document_link: str = ""
    categories: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    rating: int = 0
    background_image: Optional[str] = None  # local path of a newly chosen file
    existing_image_url: Optional[str] = None

    @classmethod
    def from_project(cls, project: dict, asset_base: str = "") -> "ProjectDraft":
        draft = cls(**{attr: project.get(key) or "" for attr, key in FORM_KEYS.items()})
        draft.categories = list(project.get("categories") or [])
        draft.tools = list(project.get("tools") or [])
        draft.rating = project.get("rating") or 0
        url = (project.get("backgroundImage") or {}).get("publicUrl")
        draft.existing_image_url = f"{asset_base}{url}" if url else None
        return draft


class ProjectWizard:
    def __init__(
        self,
        api: ApiService,
        project_id: Optional[str] = None,
        categories: Optional[list[str]] = None,
        asset_base: str = ASSET_BASE_URL,
    ):
        self.api = api
        self._categories = categories
        self.project_id = project_id
        self.asset_base = asset_base
        self.draft = ProjectDraft()
        self.step = FIRST_STEP
        self.submitting = False
        self.loading = False
        self.error: Optional[str] = None
        self.session_ended = False
        self.navigate_to: Optional[str] = None

    @property
    def categories(self) -> list[str]:
        if self._categories is None:
            self._categories = self.api.categories()
        return self._categories

    @property
    def is_edit(self) -> bool:
        return self.project_id is not None

    @property
    def step_title(self) -> str:
        return STEP_TITLES[self.step]

    # --- navigation ---------------------------------------------------------
    def next(self) -> int:
        if self.step < LAST_STEP:
            self.step += 1
        return self.step

    def previous(self) -> int:
        if self.step > FIRST_STEP:
            self.step -= 1
        return self.step

    @property
    def can_submit(self) -> bool:
        return self.step == LAST_STEP and not self.submitting

    # --- editing ------------------------------------------------------------
    def set_field(self, name: str, value: str) -> None:
        if name not in FORM_KEYS:
            raise AttributeError(f"Unknown draft field: {name}")
        setattr(self.draft, name, value)

    def toggle_category(self, category: str) -> bool:
        """Flip membership; returns whether the category is now selected."""
        if category not in self.categories:
            raise ValueError(f"Unknown category: {category}")
        if category in self.draft.categories:
            self.draft.categories = [c for c in self.draft.categories if c != category]
            return False
        self.draft.categories = self.draft.categories + [category]
        return True

    def add_tool(self, tool: str) -> bool:
        tool = tool.strip()
        if not tool:
            return False
        self.draft.tools = self.draft.tools + [tool]
        return True

    def remove_tool(self, index: int) -> None:
        if 0 <= index < len(self.draft.tools):
            self.draft.tools = [t for i, t in enumerate(self.draft.tools) if i != index]

    def select_image(self, path: Optional[str]) -> None:
        self.draft.background_image = path

    def set_rating(self, rating: int) -> None:
        if not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        self.draft.rating = rating

    @property
    def preview_image(self) -> Optional[str]:
        """File name of a newly chosen image, else the image already on the project."""
        if self.draft.background_image:
            return os.path.basename(self.draft.background_image)
        return self.draft.existing_image_url

    # --- server round trips -------------------------------------------------
    def load_existing(self) -> bool:
        if not self.is_edit:
            return False
        self.loading = True
        self.error = None
        try:
            project = self.api.get_project(self.project_id)
        except ApiError as e:
            self._fail(e)
            return False
        finally:
            self.loading = False
        self.draft = ProjectDraft.from_project(project, self.asset_base)
        return True

    def to_multipart(self) -> tuple[dict, dict]:
        data = {key: getattr(self.draft, attr) for attr, key in FORM_KEYS.items()}
        data["categories"] = json.dumps(self.draft.categories)
        data["tools"] = json.dumps(self.draft.tools)
        data["rating"] = str(self.draft.rating)

        files = {}
        if self.draft.background_image:
            path = self.draft.background_image
            mime = mimetypes.guess_type(path)[0] or "application/octet-stream"
            with open(path, "rb") as f:
                files["backgroundImage"] = (os.path.basename(path), f.read(), mime)
        return data, files

    def submit(self) -> bool:
        if not self.can_submit:
            return False

        self.submitting = True
        self.error = None
        try:
            data, files = self.to_multipart()
            if self.is_edit:
                self.api.update_project(self.project_id, data, files)
            else:
                self.api.create_project(data, files)
        except ApiError as e:
            self._fail(e)
            return False
        except OSError as e:
            self.error = f"Could not read image: {e}"
            return False
        finally:
            self.submitting = False

        if self.is_edit:
            self.navigate_to = "listing"
        else:
            self.reset()
        return True

    def reset(self) -> None:
        self.draft = ProjectDraft()
        self.step = FIRST_STEP
        self.error = None

    def _fail(self, error: ApiError) -> None:
        logger.warning("Project form request failed: %s", error.message)
        self.error = error.message
        self.session_ended = isinstance(error, SessionEndedError)
