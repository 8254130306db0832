"""Admin form handling: parsing, image uploads, list editors, multipart payloads.

The admin pages post plain HTML forms. This module turns those posts into
the multipart bodies the content backend expects:

- services: ``title, shortDescription, content, icon, isActive, order``,
  ``subServices`` (JSON, without images), ``subServiceImages`` (JSON, one
  list per sub-service), ``existingImages`` (JSON) and ``images`` files;
- blogs: ``title, excerpt, content, author, category, isPublished,
  isFeatured`` and an optional ``image`` file;
- About-Us: scalar fields plus ``coreValues``, ``whyChooseUsPoints`` and
  ``serviceAreas`` as JSON.

Repeated rows (sub-services, core values, ...) are posted as
``{prefix}-{index}-{field}`` and edited with add/remove/move actions that
re-render the form without saving.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from pydantic import Field, ValidationError

from firmsite.config import Config, config_value, max_upload_bytes
from firmsite.schemas import (
    AboutUs,
    ApiModel,
    CoreValue,
    Faq,
    ImageAsset,
    Service,
    ServiceArea,
    SubService,
    WhyChoosePoint,
)
from firmsite.utils.images import build_data_uri, encode_bytes_to_base64, get_mimetype

logger = logging.getLogger(__name__)

ROW_FIELD = re.compile(r"^(?P<prefix>[A-Za-z]+)-(?P<index>\d+)-(?P<name>\w+)$")
TRUE_VALUES = {"on", "true", "1", "yes"}

T = TypeVar("T")


class ImageUploadError(ValueError):
    """Raised when an uploaded image is rejected."""


class FormError(ValueError):
    """Raised when a submitted form does not validate."""


def validation_messages(err: ValidationError) -> List[str]:
    out = []
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ()))
        out.append(f"{loc}: {item.get('msg')}" if loc else str(item.get("msg")))
    return out


# -------- Multipart body --------

@dataclass
class UploadedImage:
    filename: str
    content_type: str
    raw: bytes


@dataclass
class MultipartPayload:
    fields: List[Tuple[str, str]] = field(default_factory=list)
    files: List[Tuple[str, UploadedImage]] = field(default_factory=list)

    def add(self, name: str, value: Any) -> None:
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.fields.append((name, "" if value is None else str(value)))

    def add_json(self, name: str, value: Any) -> None:
        self.fields.append((name, json.dumps(value, ensure_ascii=False)))

    def add_file(self, name: str, upload: UploadedImage) -> None:
        self.files.append((name, upload))

    def get(self, name: str) -> Optional[str]:
        for key, value in self.fields:
            if key == name:
                return value
        return None

    def to_requests_files(self) -> List[Tuple[str, tuple]]:
        # Plain fields go in as (None, value) so the body is always multipart
        parts: List[Tuple[str, tuple]] = [
            (name, (None, value)) for name, value in self.fields
        ]
        parts.extend(
            (name, (up.filename, up.raw, up.content_type)) for name, up in self.files
        )
        return parts


# -------- Image uploads --------

def read_upload(storage: Any, cfg: Any = Config) -> UploadedImage:
    """Validate one werkzeug ``FileStorage`` and read it into memory."""
    filename = os.path.basename(storage.filename or "")
    ext = os.path.splitext(filename)[1].lower()
    allowed = config_value(cfg, "ALLOWED_IMAGE_EXTS")
    if ext not in allowed:
        raise ImageUploadError(f"Unsupported image type: {filename or 'unnamed file'}")

    content_type = storage.mimetype or ""
    if not content_type.startswith("image/"):
        try:
            content_type = get_mimetype(filename)
        except ValueError as e:
            raise ImageUploadError(f"Not an image: {filename}") from e
    if not content_type.startswith("image/"):
        raise ImageUploadError(f"Not an image: {filename}")

    raw = storage.read()
    if not raw:
        raise ImageUploadError(f"Empty file: {filename}")
    if len(raw) > max_upload_bytes(cfg):
        raise ImageUploadError(f"{filename} is too large.")
    return UploadedImage(filename=filename, content_type=content_type, raw=raw)


def read_uploads(
    storages: Iterable[Any],
    existing_count: int = 0,
    cfg: Any = Config,
    scope: str = "",
) -> List[UploadedImage]:
    """Read the selected files, enforcing the per-entity image limit."""
    selected = [s for s in storages if s is not None and getattr(s, "filename", "")]
    limit = int(config_value(cfg, "MAX_IMAGES"))
    if existing_count + len(selected) > limit:
        suffix = f" {scope}" if scope else ""
        raise ImageUploadError(f"Maximum {limit} images allowed{suffix}")
    return [read_upload(s, cfg) for s in selected]


def to_image_asset(upload: UploadedImage) -> ImageAsset:
    return ImageAsset(data=encode_bytes_to_base64(upload.raw), content_type=upload.content_type)


def image_previews(existing: Sequence[ImageAsset], uploads: Sequence[UploadedImage] = ()) -> List[str]:
    previews = [img.data_uri for img in existing]
    previews.extend(build_data_uri(up.content_type, encode_bytes_to_base64(up.raw)) for up in uploads)
    return previews


def selected_indices(values: Iterable[str]) -> Set[int]:
    """Integer values of a checkbox group; anything else is ignored."""
    wanted = set()
    for value in values:
        try:
            wanted.add(int(value))
        except (TypeError, ValueError):
            continue
    return wanted


def keep_selected(images: Sequence[ImageAsset], selected: Iterable[str]) -> List[ImageAsset]:
    """Images whose index was ticked in a ``keep`` checkbox group, in stored order."""
    wanted = selected_indices(selected)
    return [img for i, img in enumerate(images) if i in wanted]


# -------- Row editors --------

def _row_indices(form: Any, prefix: str) -> List[int]:
    indices = set()
    for key in form.keys():
        m = ROW_FIELD.match(key)
        if m and m.group("prefix") == prefix:
            indices.add(int(m.group("index")))
    return sorted(indices)


def _flag(form: Any, key: str) -> bool:
    return str(form.get(key, "")).lower() in TRUE_VALUES


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def renumber(subs: Sequence[SubService]) -> List[SubService]:
    return [sub.model_copy(update={"order": i}) for i, sub in enumerate(subs)]


def add_sub_service(subs: Sequence[SubService]) -> List[SubService]:
    return list(subs) + [SubService(order=len(subs))]


def remove_sub_service(subs: Sequence[SubService], index: int) -> List[SubService]:
    return renumber([s for i, s in enumerate(subs) if i != index])


def move_sub_service(subs: Sequence[SubService], index: int, direction: str) -> List[SubService]:
    target = index - 1 if direction == "up" else index + 1
    if index < 0 or index >= len(subs) or target < 0 or target >= len(subs):
        return list(subs)
    updated = list(subs)
    updated[index], updated[target] = updated[target], updated[index]
    return renumber(updated)


def apply_sub_service_action(subs: Sequence[SubService], action: str) -> Tuple[List[SubService], Optional[int]]:
    """Apply an editor button (``add``, ``remove:i``, ``up:i``, ``down:i``).

    Returns the new list and the index of the row to keep expanded.
    """
    verb, _, arg = action.partition(":")
    index = _int(arg, -1)
    if verb == "add":
        return add_sub_service(subs), len(subs)
    if verb == "remove":
        return remove_sub_service(subs, index), None
    if verb in ("up", "down"):
        target = index - 1 if verb == "up" else index + 1
        if not (0 <= index < len(subs) and 0 <= target < len(subs)):
            return list(subs), index
        return move_sub_service(subs, index, verb), target
    return list(subs), None


def edit_rows(rows: Sequence[T], action: str, factory: Callable[[int], T]) -> List[T]:
    """``add`` appends ``factory(len(rows))``; ``remove:i`` drops row ``i``."""
    verb, _, arg = action.partition(":")
    if verb == "add":
        return list(rows) + [factory(len(rows))]
    if verb == "remove":
        index = _int(arg, -1)
        return [r for i, r in enumerate(rows) if i != index]
    return list(rows)


# -------- Services --------

class ServiceForm(ApiModel):
    title: str = Field(min_length=1)
    short_description: str = ""
    content: str = ""
    icon: str = "FileText"
    is_active: bool = True
    order: int = 0


def parse_service_form(form: Any) -> ServiceForm:
    try:
        return ServiceForm(
            title=(form.get("title") or "").strip(),
            short_description=(form.get("shortDescription") or "").strip(),
            content=form.get("content") or "",
            icon=form.get("icon") or "FileText",
            is_active=_flag(form, "isActive"),
            order=_int(form.get("order")),
        )
    except ValidationError as e:
        raise FormError("; ".join(validation_messages(e))) from e


def _parse_sub(form: Any, i: int) -> SubService:
    prefix = f"sub-{i}-"
    return SubService(
        id=form.get(prefix + "id") or None,
        slug=form.get(prefix + "slug") or None,
        title=(form.get(prefix + "title") or "").strip(),
        short_description=(form.get(prefix + "shortDescription") or "").strip(),
        content=form.get(prefix + "content") or "",
        is_active=_flag(form, prefix + "isActive"),
        order=_int(form.get(prefix + "order"), i),
    )


def _stored_sub(current: Optional[Service], sub: SubService) -> Optional[SubService]:
    if current is None or not sub.id:
        return None
    return current.find_sub_service_by_id(sub.id)


def parse_sub_services(form: Any, current: Optional[Service] = None) -> List[SubService]:
    """Sub-service rows as posted, with their stored images re-attached."""
    subs = []
    for i in _row_indices(form, "sub"):
        sub = _parse_sub(form, i)
        stored = _stored_sub(current, sub)
        if stored is not None:
            sub.images = list(stored.images)
        subs.append(sub)
    return subs


def collect_sub_services(
    form: Any,
    files: Any,
    current: Optional[Service] = None,
    cfg: Any = Config,
) -> List[SubService]:
    """Sub-service rows for saving: kept stored images plus new uploads."""
    subs = []
    for i in _row_indices(form, "sub"):
        sub = _parse_sub(form, i)
        stored = _stored_sub(current, sub)
        kept = keep_selected(stored.images if stored else [], form.getlist(f"sub-{i}-keepImages"))
        uploads = read_uploads(files.getlist(f"sub-{i}-images"), len(kept), cfg, scope="per sub-service")
        sub.images = kept + [to_image_asset(up) for up in uploads]
        subs.append(sub)
    for sub in subs:
        if not sub.title:
            raise FormError("Every sub-service needs a title.")
    return renumber(subs)


def build_service_payload(
    service: ServiceForm,
    sub_services: Sequence[SubService],
    existing_images: Sequence[ImageAsset],
    new_images: Sequence[UploadedImage],
) -> MultipartPayload:
    payload = MultipartPayload()
    payload.add("title", service.title)
    payload.add("shortDescription", service.short_description)
    payload.add("content", service.content)
    payload.add("icon", service.icon)
    payload.add("isActive", service.is_active)
    payload.add("order", service.order)
    # Images travel separately from the sub-service documents
    payload.add_json(
        "subServices",
        [sub.model_dump(by_alias=True, exclude={"images"}, exclude_none=True) for sub in sub_services],
    )
    payload.add_json(
        "subServiceImages",
        [[img.to_api() for img in sub.images] for sub in sub_services],
    )
    payload.add_json("existingImages", [img.to_api() for img in existing_images])
    for up in new_images:
        payload.add_file("images", up)
    return payload


# -------- Blogs --------

class BlogForm(ApiModel):
    title: str = Field(min_length=1)
    excerpt: str = Field(default="", max_length=Config.EXCERPT_MAX_CHARS)
    content: str = Field(min_length=1)
    author: str = ""
    category: str = ""
    is_published: bool = True
    is_featured: bool = False


def parse_blog_form(form: Any) -> BlogForm:
    try:
        return BlogForm(
            title=(form.get("title") or "").strip(),
            excerpt=(form.get("excerpt") or "").strip(),
            content=form.get("content") or "",
            author=(form.get("author") or "").strip(),
            category=form.get("category") or "",
            is_published=_flag(form, "isPublished"),
            is_featured=_flag(form, "isFeatured"),
        )
    except ValidationError as e:
        raise FormError("; ".join(validation_messages(e))) from e


def build_blog_payload(blog: BlogForm, image: Optional[UploadedImage] = None) -> MultipartPayload:
    payload = MultipartPayload()
    payload.add("title", blog.title)
    payload.add("excerpt", blog.excerpt)
    payload.add("content", blog.content)
    payload.add("author", blog.author)
    payload.add("category", blog.category)
    payload.add("isPublished", blog.is_published)
    payload.add("isFeatured", blog.is_featured)
    if image is not None:
        payload.add_file("image", image)
    return payload


# -------- FAQs --------

def parse_faq_form(form: Any) -> Faq:
    question = (form.get("question") or "").strip()
    answer = (form.get("answer") or "").strip()
    if not question or not answer:
        raise FormError("Question and answer are required.")
    return Faq(
        question=question,
        answer=answer,
        category=form.get("category") or "General",
        is_active=_flag(form, "isActive"),
        order=_int(form.get("order")),
    )


# -------- About-Us --------

ABOUT_US_SCALARS = [
    ("hero_title", "heroTitle"),
    ("hero_subtitle", "heroSubtitle"),
    ("story_title", "storyTitle"),
    ("story_content", "storyContent"),
    ("mission_title", "missionTitle"),
    ("mission_content", "missionContent"),
    ("vision_title", "visionTitle"),
    ("vision_content", "visionContent"),
    ("team_title", "teamTitle"),
    ("team_subtitle", "teamSubtitle"),
    ("why_choose_us_title", "whyChooseUsTitle"),
    ("address", "address"),
    ("phone", "phone"),
    ("email", "email"),
    ("working_hours", "workingHours"),
]

ABOUT_US_ROWS = {
    "coreValues": lambda n: CoreValue(order=n),
    "whyChooseUsPoints": lambda n: WhyChoosePoint(),
    "serviceAreas": lambda n: ServiceArea(),
}


def parse_about_us_form(form: Any) -> AboutUs:
    values = {attr: (form.get(name) or "").strip() for attr, name in ABOUT_US_SCALARS}
    values["core_values"] = [
        CoreValue(
            title=(form.get(f"coreValues-{i}-title") or "").strip(),
            description=(form.get(f"coreValues-{i}-description") or "").strip(),
            icon=form.get(f"coreValues-{i}-icon") or "Shield",
            order=pos,
        )
        for pos, i in enumerate(_row_indices(form, "coreValues"))
    ]
    values["why_choose_us_points"] = [
        WhyChoosePoint(
            title=(form.get(f"whyChooseUsPoints-{i}-title") or "").strip(),
            description=(form.get(f"whyChooseUsPoints-{i}-description") or "").strip(),
            icon=form.get(f"whyChooseUsPoints-{i}-icon") or "Award",
        )
        for i in _row_indices(form, "whyChooseUsPoints")
    ]
    values["service_areas"] = [
        ServiceArea(
            city=(form.get(f"serviceAreas-{i}-city") or "").strip(),
            is_active=_flag(form, f"serviceAreas-{i}-isActive"),
        )
        for i in _row_indices(form, "serviceAreas")
    ]
    return AboutUs(**values)


def apply_about_us_action(about: AboutUs, action: str) -> AboutUs:
    """``add:coreValues`` / ``remove:serviceAreas:2`` style editor buttons."""
    verb, _, rest = action.partition(":")
    row_name, _, index = rest.partition(":")
    factory = ABOUT_US_ROWS.get(row_name)
    if factory is None:
        return about
    attr = {"coreValues": "core_values", "whyChooseUsPoints": "why_choose_us_points", "serviceAreas": "service_areas"}[row_name]
    rows = edit_rows(getattr(about, attr), f"{verb}:{index}" if index else verb, factory)
    if attr == "core_values":
        rows = [row.model_copy(update={"order": i}) for i, row in enumerate(rows)]
    return about.model_copy(update={attr: rows})


def build_about_us_payload(about: AboutUs) -> MultipartPayload:
    payload = MultipartPayload()
    for attr, name in ABOUT_US_SCALARS:
        payload.add(name, getattr(about, attr))
    payload.add_json("coreValues", [v.to_api() for v in about.core_values])
    payload.add_json("whyChooseUsPoints", [p.to_api() for p in about.why_choose_us_points])
    payload.add_json("serviceAreas", [a.to_api() for a in about.service_areas])
    return payload
