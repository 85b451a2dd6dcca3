"""
Pydantic models for API request/response validation.
"""

import html
import re
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from .database import DBBlogPost, DBContactMessage, DBProject, DBUser, Page

HTTP_URL = r"^https?://.+"
GITHUB_URL = r"^https?://(www\.)?github\.com/.+"

ProjectStatus = Literal["active", "archived", "draft"]
MessageStatus = Literal["new", "read", "replied", "archived"]
PostStatus = Literal["published", "draft", "archived"]


def _iso(value) -> str | None:
    return value.isoformat() if value else None


# ─────────────────────────────────────────────────────────────
# Response envelopes
# ─────────────────────────────────────────────────────────────

def envelope(data: dict | None = None, message: str | None = None) -> dict:
    """Wrap a payload in the standard success envelope."""
    body: dict = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def paginated(page: Page, key: str, items: list, **extra_data) -> dict:
    """Success envelope for a list endpoint."""
    data = {key: items}
    data.update({k: v for k, v in extra_data.items() if v is not None})
    return {
        "status": "success",
        "results": len(items),
        "total_results": page.total,
        "total_pages": page.total_pages,
        "current_page": page.page,
        "data": data,
    }


# ─────────────────────────────────────────────────────────────
# Auth Schemas
# ─────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    """Credentials for /auth/login."""
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: Annotated[str, StringConstraints(min_length=1)]


class ProfileUpdateRequest(BaseModel):
    email: EmailStr | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ChangePasswordRequest(BaseModel):
    current_password: Annotated[str, StringConstraints(min_length=1)]
    new_password: Annotated[str, StringConstraints(min_length=6)]

    @field_validator("new_password")
    @classmethod
    def check_strength(cls, value: str) -> str:
        if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
            raise ValueError(
                "New password must contain at least one uppercase letter, "
                "one lowercase letter, and one number"
            )
        return value


class UserResponse(BaseModel):
    id: int
    username: str
    email: str | None
    role: str
    last_login: str | None
    created_at: str

    @classmethod
    def from_db(cls, user: DBUser) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            last_login=_iso(user.last_login),
            created_at=user.created_at.isoformat(),
        )


# ─────────────────────────────────────────────────────────────
# Project Schemas
# ─────────────────────────────────────────────────────────────

class ProjectRequest(BaseModel):
    """Body for creating or replacing a project."""
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
    description: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=500)]
    image_url: Annotated[str, StringConstraints(strip_whitespace=True, pattern=HTTP_URL)]
    tech_stack: list[str] = Field(min_length=1)
    github_url: Annotated[str, StringConstraints(strip_whitespace=True, pattern=GITHUB_URL)]
    live_demo_url: str | None = None
    featured: bool = False
    order: int = Field(default=0, ge=0)
    status: ProjectStatus = "active"

    @field_validator("tech_stack")
    @classmethod
    def clean_tech_stack(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value]
        if any(not item for item in cleaned):
            raise ValueError("Technology stack items cannot be empty")
        return cleaned

    @field_validator("live_demo_url")
    @classmethod
    def check_demo_url(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not re.match(HTTP_URL, value):
            raise ValueError("Please provide a valid demo URL")
        return value


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: str
    image_url: str
    tech_stack: list[str]
    github_url: str
    live_demo_url: str | None
    featured: bool
    order: int
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_db(cls, project: DBProject) -> "ProjectResponse":
        return cls(
            id=project.id,
            title=project.title,
            description=project.description,
            image_url=project.image_url,
            tech_stack=project.tech_stack,
            github_url=project.github_url,
            live_demo_url=project.live_demo_url,
            featured=project.featured,
            order=project.order,
            status=project.status,
            created_at=project.created_at.isoformat(),
            updated_at=project.updated_at.isoformat(),
        )


# ─────────────────────────────────────────────────────────────
# Contact Schemas
# ─────────────────────────────────────────────────────────────

class ContactRequest(BaseModel):
    """Public contact form submission. Free text is HTML-escaped."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
    email: EmailStr
    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=1000)]

    @field_validator("name", "message")
    @classmethod
    def escape_markup(cls, value: str) -> str:
        return html.escape(value)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class ContactUpdateRequest(BaseModel):
    status: MessageStatus | None = None
    notes: Annotated[str, StringConstraints(max_length=500)] | None = None


class ContactSubmissionResponse(BaseModel):
    """What the public sender gets back: no origin metadata."""
    id: int
    name: str
    email: str
    message: str
    created_at: str

    @classmethod
    def from_db(cls, message: DBContactMessage) -> "ContactSubmissionResponse":
        return cls(
            id=message.id,
            name=message.name,
            email=message.email,
            message=message.message,
            created_at=message.created_at.isoformat(),
        )


class ContactMessageResponse(BaseModel):
    id: int
    name: str
    email: str
    message: str
    status: str
    ip_address: str | None
    user_agent: str | None
    replied: bool
    replied_at: str | None
    notes: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_db(cls, message: DBContactMessage) -> "ContactMessageResponse":
        return cls(
            id=message.id,
            name=message.name,
            email=message.email,
            message=message.message,
            status=message.status,
            ip_address=message.ip_address,
            user_agent=message.user_agent,
            replied=message.replied,
            replied_at=_iso(message.replied_at),
            notes=message.notes,
            created_at=message.created_at.isoformat(),
            updated_at=message.updated_at.isoformat(),
        )


# ─────────────────────────────────────────────────────────────
# Blog Schemas
# ─────────────────────────────────────────────────────────────

class PostUpdateRequest(BaseModel):
    """Admin changes to a synced post. Content itself comes from Medium."""
    featured: bool | None = None
    status: PostStatus | None = None


class PostSummaryResponse(BaseModel):
    """Post for list views (no content body)."""
    id: int
    medium_id: str
    slug: str
    title: str
    description: str
    excerpt: str | None
    author: str | None
    tags: list[str]
    categories: list[str]
    medium_url: str
    image_url: str | None
    published_at: str
    reading_time: int
    status: str
    featured: bool
    views: int
    likes: int

    @classmethod
    def from_db(cls, post: DBBlogPost) -> "PostSummaryResponse":
        return cls(
            id=post.id,
            medium_id=post.medium_id,
            slug=post.slug,
            title=post.title,
            description=post.description,
            excerpt=post.excerpt,
            author=post.author,
            tags=post.tags,
            categories=post.categories,
            medium_url=post.medium_url,
            image_url=post.image_url,
            published_at=post.published_at.isoformat(),
            reading_time=post.reading_time,
            status=post.status,
            featured=post.featured,
            views=post.views,
            likes=post.likes,
        )


class PostDetailResponse(PostSummaryResponse):
    """Post with full content and sync metadata."""
    content: str
    meta_title: str | None
    meta_description: str | None
    last_synced_at: str | None
    sync_status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_db(cls, post: DBBlogPost) -> "PostDetailResponse":
        summary = PostSummaryResponse.from_db(post).model_dump()
        return cls(
            **summary,
            content=post.content,
            meta_title=post.meta_title,
            meta_description=post.meta_description,
            last_synced_at=_iso(post.last_synced_at),
            sync_status=post.sync_status,
            created_at=post.created_at.isoformat(),
            updated_at=post.updated_at.isoformat(),
        )
