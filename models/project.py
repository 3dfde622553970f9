import uuid
import datetime
from sqlalchemy import Column, String, Text, Integer, TIMESTAMP, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from core.database import Base

CATEGORIES = [
    "AI Assistant",
    "Data Analysis",
    "Content Generation",
    "Automation",
    "Customer Service",
    "Marketing",
    "Development",
    "Design",
    "Research",
    "Other",
]

STATUSES = ("draft", "published", "archived")


class ProjectCategory(Base):
    __tablename__ = "project_category"

    project_id = Column(UUID(as_uuid=True), ForeignKey("project.id", ondelete="CASCADE"), primary_key=True)
    category = Column(String(64), primary_key=True, index=True)
    position = Column(Integer, nullable=False, default=0)  # order as submitted


class Project(Base):
    __tablename__ = "project"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Step 1 - basic information
    name = Column(String, nullable=False, default="")
    project_name = Column(String, nullable=False)
    project_description = Column(Text, nullable=False)
    linked_profile = Column(String, nullable=True)

    # Step 2 - details & resources
    video_link = Column(String, nullable=True)
    flow_file_link = Column(String, nullable=True)
    deployed_link = Column(String, nullable=True)
    instruction_document_link = Column(String, nullable=True)
    background_image = Column(JSON, nullable=True)
    tools = Column(JSON, nullable=False, default=list)

    # Step 3 - review & rating
    rating = Column(Integer, nullable=False, default=0)

    created_by = Column(UUID(as_uuid=True), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="published", index=True)
    published_at = Column(TIMESTAMP, default=datetime.datetime.utcnow, index=True)
    created_at = Column(TIMESTAMP, default=datetime.datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    owner = relationship("User", lazy="joined")
    category_links = relationship(
        ProjectCategory,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by=ProjectCategory.position,
    )

    __table_args__ = (
        Index("ix_project_search", "name", "project_name"),
    )

    @property
    def categories(self) -> list[str]:
        return [link.category for link in self.category_links]

    @categories.setter
    def categories(self, values) -> None:
        wanted = list(dict.fromkeys(values))
        existing = {link.category: link for link in self.category_links}
        links = []
        for position, category in enumerate(wanted):
            link = existing.get(category) or ProjectCategory(category=category)
            link.position = position
            links.append(link)
        self.category_links = links
