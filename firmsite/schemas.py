"""Pydantic models for content entities and rendered sections.

Mirrors the JSON the content backend returns (camelCase field names,
Mongo-style ``_id``) and the shapes the admin forms submit. Also holds
the ``Section`` union produced by the content/image interleaver.
"""

from __future__ import annotations

from typing import Annotated, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from firmsite.utils.images import build_data_uri


class ApiModel(BaseModel):
    """Base for backend payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


DEFAULT_IMAGE_TYPE = "image/jpeg"


class ImageAsset(ApiModel):
    data: str
    content_type: str = DEFAULT_IMAGE_TYPE

    @field_validator("content_type", mode="before")
    @classmethod
    def _missing_type_is_default(cls, value):
        # Older records were stored without a media type
        return value or DEFAULT_IMAGE_TYPE

    @field_validator("content_type")
    @classmethod
    def _must_be_image(cls, value: str) -> str:
        if not value.lower().startswith("image/"):
            raise ValueError(f"Not an image media type: {value}")
        return value

    @property
    def data_uri(self) -> str:
        return build_data_uri(self.content_type, self.data)


# -------- Interleaver output --------

class ContentSection(BaseModel):
    type: Literal["content"] = "content"
    html: str


class ImageSection(BaseModel):
    type: Literal["image"] = "image"
    image: ImageAsset


Section = Annotated[Union[ContentSection, ImageSection], Field(discriminator="type")]


# -------- Services --------

class SubService(ApiModel):
    id: Optional[str] = Field(default=None, alias="_id")
    title: str = ""
    slug: Optional[str] = None
    short_description: str = ""
    content: str = ""
    is_active: bool = True
    order: int = 0
    images: List[ImageAsset] = Field(default_factory=list)


class Service(ApiModel):
    id: Optional[str] = Field(default=None, alias="_id")
    title: str
    slug: str = ""
    short_description: str = ""
    content: str = ""
    icon: str = "FileText"
    image: Optional[ImageAsset] = None
    images: List[ImageAsset] = Field(default_factory=list)
    sub_services: List[SubService] = Field(default_factory=list)
    is_active: bool = True
    order: int = 0

    @field_validator("image", mode="before")
    @classmethod
    def _empty_image_is_none(cls, value):
        # Backend sends {} or {data: null} for services without a legacy image
        if isinstance(value, dict) and not value.get("data"):
            return None
        return value

    @property
    def gallery(self) -> List[ImageAsset]:
        """Images to show, falling back to the legacy single image."""
        if self.images:
            return list(self.images)
        if self.image is not None:
            return [self.image]
        return []

    @property
    def active_sub_services(self) -> List[SubService]:
        return sorted((s for s in self.sub_services if s.is_active), key=lambda s: s.order)

    def find_sub_service(self, slug: str) -> Optional[SubService]:
        for sub in self.sub_services:
            if sub.slug == slug:
                return sub
        return None

    def find_sub_service_by_id(self, sub_id: str) -> Optional[SubService]:
        for sub in self.sub_services:
            if sub.id == sub_id:
                return sub
        return None


# -------- Blogs, FAQs, categories --------

class Blog(ApiModel):
    id: Optional[str] = Field(default=None, alias="_id")
    title: str
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    author: str = ""
    category: str = ""
    image: Optional[ImageAsset] = None
    is_published: bool = True
    is_featured: bool = False
    created_at: Optional[str] = None

    @field_validator("image", mode="before")
    @classmethod
    def _empty_image_is_none(cls, value):
        if isinstance(value, dict) and not value.get("data"):
            return None
        return value


class Faq(ApiModel):
    id: Optional[str] = Field(default=None, alias="_id")
    question: str
    answer: str
    category: str = "General"
    order: int = 0
    is_active: bool = True


CategoryType = Literal["faq", "blog"]


class Category(ApiModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: str
    type: Optional[CategoryType] = None
    icon: Optional[str] = None
    order: int = 0
    is_active: bool = True


class FaqGroups(BaseModel):
    """FAQs grouped by category name, with the category display order."""

    categories: List[str] = Field(default_factory=list)
    grouped: Dict[str, List[Faq]] = Field(default_factory=dict)

    def for_category(self, name: str) -> List[Faq]:
        return sorted(self.grouped.get(name, []), key=lambda f: f.order)


# -------- Contacts --------

class ContactSubmission(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=254)
    phone: Optional[str] = None
    subject: str = Field(min_length=1, max_length=300)
    message: str = Field(min_length=1, max_length=5000)

    @field_validator("name", "subject", "message", "email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("Enter a valid email address")
        return value

    @field_validator("phone", mode="before")
    @classmethod
    def _blank_phone_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Contact(ApiModel):
    """A stored submission as listed in the admin inbox."""

    id: str = Field(alias="_id")
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    subject: str = ""
    message: str = ""
    is_read: bool = False
    created_at: Optional[str] = None


# -------- About us --------

class CoreValue(ApiModel):
    title: str = ""
    description: str = ""
    icon: str = "Shield"
    order: int = 0


class WhyChoosePoint(ApiModel):
    title: str = ""
    description: str = ""
    icon: str = "Award"


class ServiceArea(ApiModel):
    city: str = ""
    is_active: bool = True


class AboutUs(ApiModel):
    hero_title: str = ""
    hero_subtitle: str = ""
    story_title: str = ""
    story_content: str = ""
    mission_title: str = ""
    mission_content: str = ""
    vision_title: str = ""
    vision_content: str = ""
    core_values: List[CoreValue] = Field(default_factory=list)
    team_title: str = ""
    team_subtitle: str = ""
    why_choose_us_title: str = ""
    why_choose_us_points: List[WhyChoosePoint] = Field(default_factory=list)
    service_areas: List[ServiceArea] = Field(default_factory=list)
    address: str = ""
    phone: str = ""
    email: str = ""
    working_hours: str = ""


# -------- Admin --------

class AdminUser(ApiModel):
    id: Optional[str] = None
    email: str
    name: str = ""


class Stats(ApiModel):
    services_count: int = 0
    blogs_count: int = 0
    contacts_count: int = 0
    unread_contacts: int = 0
    recent_contacts: List[Contact] = Field(default_factory=list)
    recent_blogs: List[Blog] = Field(default_factory=list)


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    page: int = 1
    pages: int = 1
    total: int = 0
    unread_count: Optional[int] = None
