"""ContentApiClient: HTTP client for the content backend.

Wraps the backend's REST contract for the public site (services, blogs,
FAQs, About-Us, contact form) and the admin panel (auth, stats and CRUD
for every content type). Responses use the envelope
``{success, data, pages, total, unreadCount, grouped, categories, message}``
and are parsed into the pydantic models in ``firmsite.schemas``.

``get_client()`` builds a per-request client from the Flask config and the
admin token stored in the session.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import requests
from flask import current_app, g, session
from pydantic import BaseModel

from firmsite.config import Config
from firmsite.schemas import (
    AboutUs,
    AdminUser,
    Blog,
    Category,
    CategoryType,
    Contact,
    ContactSubmission,
    Faq,
    FaqGroups,
    Page,
    Service,
    Stats,
)
from firmsite.services.form_service import MultipartPayload

logger = logging.getLogger(__name__)

TOKEN_SESSION_KEY = "admin_token"

M = TypeVar("M", bound=BaseModel)


class ContentApiError(RuntimeError):
    """Raised when the content backend fails or rejects a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ContentNotFoundError(ContentApiError):
    """Raised when the backend answers 404."""


class AuthRequiredError(ContentApiError):
    """Raised when the backend answers 401 (missing or expired token)."""


def _json_or_empty(response: requests.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {"data": payload}


def _category_names(items: Any) -> List[str]:
    # Category lists arrive either as plain names or as category documents
    names = []
    for item in items or []:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, dict) and item.get("name"):
            names.append(item["name"])
    return names


class ContentApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        cfg: Any = Config,
    ):
        self.base_url = (base_url or cfg.CONTENT_API_URL).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else cfg.CONTENT_API_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        multipart: Optional[MultipartPayload] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        params = {k: v for k, v in (params or {}).items() if v is not None}
        kwargs: Dict[str, Any] = {"headers": self._headers(), "params": params, "timeout": self.timeout}
        if json is not None:
            kwargs["json"] = json
        if multipart is not None:
            kwargs["files"] = multipart.to_requests_files()

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error("Content API %s %s failed: %s", method, url, e)
            raise ContentApiError(f"Content API unreachable: {e}") from e

        payload = _json_or_empty(response)
        status = response.status_code
        if status < 400:
            return payload

        message = payload.get("message") or payload.get("error") or f"Content API error {status}"
        logger.warning("Content API %s %s -> %s: %s", method, url, status, message)
        if status == 401:
            raise AuthRequiredError(message, status)
        if status == 404:
            raise ContentNotFoundError(message, status)
        raise ContentApiError(message, status)

    # -------- Envelope helpers --------

    @staticmethod
    def _data(payload: Dict[str, Any]) -> Any:
        return payload.get("data")

    @staticmethod
    def _one(payload: Dict[str, Any], model: Type[M]) -> M:
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ContentNotFoundError("Response did not contain a record.", 404)
        return model.model_validate(data)

    @staticmethod
    def _maybe_one(payload: Dict[str, Any], model: Type[M]) -> Optional[M]:
        # Writes may answer with just a message
        data = payload.get("data")
        return model.model_validate(data) if isinstance(data, dict) else None

    @staticmethod
    def _many(payload: Dict[str, Any], model: Type[M]) -> List[M]:
        return [model.model_validate(item) for item in payload.get("data") or []]

    def _page(self, payload: Dict[str, Any], model: Type[M], page: int) -> Page[M]:
        items = self._many(payload, model)
        return Page[model](
            items=items,
            page=page,
            pages=int(payload.get("pages") or 1),
            total=int(payload.get("total") or len(items)),
            unread_count=payload.get("unreadCount"),
        )

    # -------- Auth --------

    def login(self, email: str, password: str) -> Tuple[str, AdminUser]:
        payload = self._request("POST", "/auth/login", json={"email": email, "password": password})
        token = payload.get("token")
        if not token:
            raise ContentApiError(payload.get("message") or "Login failed.", 401)
        return token, AdminUser.model_validate(payload.get("admin") or {"email": email})

    def verify(self) -> AdminUser:
        payload = self._request("GET", "/auth/verify")
        return AdminUser.model_validate(payload.get("admin") or {})

    def change_password(self, current_password: str, new_password: str) -> str:
        payload = self._request(
            "PUT",
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        return payload.get("message") or "Password updated."

    # -------- Public content --------

    def list_services(self, page: Optional[int] = None, limit: Optional[int] = None) -> Page[Service]:
        payload = self._request("GET", "/services", params={"page": page, "limit": limit})
        return self._page(payload, Service, page or 1)

    def get_service(self, slug: str) -> Service:
        return self._one(self._request("GET", f"/services/{slug}"), Service)

    def list_blogs(self, page: int = 1, limit: int = 9, category: Optional[str] = None) -> Page[Blog]:
        payload = self._request("GET", "/blogs", params={"page": page, "limit": limit, "category": category})
        return self._page(payload, Blog, page)

    def get_blog(self, slug: str) -> Blog:
        return self._one(self._request("GET", f"/blogs/{slug}"), Blog)

    def list_blog_categories(self) -> List[str]:
        return _category_names(self._data(self._request("GET", "/blogs/categories")))

    def submit_contact(self, submission: ContactSubmission) -> str:
        payload = self._request("POST", "/contact", json=submission.to_api())
        return payload.get("message") or "Thank you for contacting us."

    def list_faqs(self, category: Optional[str] = None) -> FaqGroups:
        payload = self._request("GET", "/faq", params={"category": category})
        grouped = {
            name: [Faq.model_validate(item) for item in items or []]
            for name, items in (payload.get("grouped") or {}).items()
        }
        categories = _category_names(payload.get("categories")) or list(grouped)
        return FaqGroups(categories=categories, grouped=grouped)

    def list_faq_categories(self) -> List[str]:
        return _category_names(self._data(self._request("GET", "/faq/categories")))

    def get_about_us(self) -> Optional[AboutUs]:
        data = self._data(self._request("GET", "/aboutus"))
        return AboutUs.model_validate(data) if isinstance(data, dict) else None

    # -------- Admin: dashboard --------

    def get_stats(self) -> Stats:
        return self._one(self._request("GET", "/admin/stats"), Stats)

    # -------- Admin: services --------

    def admin_list_services(self, page: int = 1, limit: int = 10) -> Page[Service]:
        payload = self._request("GET", "/admin/services", params={"page": page, "limit": limit})
        return self._page(payload, Service, page)

    def admin_get_service(self, service_id: str) -> Service:
        return self._one(self._request("GET", f"/admin/services/{service_id}"), Service)

    def create_service(self, form: MultipartPayload) -> Optional[Service]:
        return self._maybe_one(self._request("POST", "/admin/services", multipart=form), Service)

    def update_service(self, service_id: str, form: MultipartPayload) -> Optional[Service]:
        return self._maybe_one(self._request("PUT", f"/admin/services/{service_id}", multipart=form), Service)

    def delete_service(self, service_id: str) -> None:
        self._request("DELETE", f"/admin/services/{service_id}")

    # -------- Admin: blogs --------

    def admin_list_blogs(self, page: int = 1, limit: int = 10) -> Page[Blog]:
        payload = self._request("GET", "/admin/blogs", params={"page": page, "limit": limit})
        return self._page(payload, Blog, page)

    def admin_get_blog(self, blog_id: str) -> Blog:
        return self._one(self._request("GET", f"/admin/blogs/{blog_id}"), Blog)

    def create_blog(self, form: MultipartPayload) -> Optional[Blog]:
        return self._maybe_one(self._request("POST", "/admin/blogs", multipart=form), Blog)

    def update_blog(self, blog_id: str, form: MultipartPayload) -> Optional[Blog]:
        return self._maybe_one(self._request("PUT", f"/admin/blogs/{blog_id}", multipart=form), Blog)

    def delete_blog(self, blog_id: str) -> None:
        self._request("DELETE", f"/admin/blogs/{blog_id}")

    # -------- Admin: contacts --------

    def admin_list_contacts(self, page: int = 1, limit: int = 20) -> Page[Contact]:
        payload = self._request("GET", "/admin/contacts", params={"page": page, "limit": limit})
        return self._page(payload, Contact, page)

    def mark_contact_read(self, contact_id: str) -> None:
        self._request("PUT", f"/admin/contacts/{contact_id}/read")

    def delete_contact(self, contact_id: str) -> None:
        self._request("DELETE", f"/admin/contacts/{contact_id}")

    # -------- Admin: FAQs --------

    def admin_list_faqs(self, page: int = 1, limit: int = 50) -> Page[Faq]:
        payload = self._request("GET", "/admin/faqs", params={"page": page, "limit": limit})
        return self._page(payload, Faq, page)

    def admin_get_faq(self, faq_id: str) -> Faq:
        return self._one(self._request("GET", f"/admin/faqs/{faq_id}"), Faq)

    def create_faq(self, faq: Faq) -> Optional[Faq]:
        body = faq.model_dump(by_alias=True, exclude={"id"})
        return self._maybe_one(self._request("POST", "/admin/faqs", json=body), Faq)

    def update_faq(self, faq_id: str, faq: Faq) -> Optional[Faq]:
        body = faq.model_dump(by_alias=True, exclude={"id"})
        return self._maybe_one(self._request("PUT", f"/admin/faqs/{faq_id}", json=body), Faq)

    def delete_faq(self, faq_id: str) -> None:
        self._request("DELETE", f"/admin/faqs/{faq_id}")

    # -------- Admin: About-Us --------

    def admin_get_about_us(self) -> Optional[AboutUs]:
        data = self._data(self._request("GET", "/admin/aboutus"))
        return AboutUs.model_validate(data) if isinstance(data, dict) else None

    def update_about_us(self, form: MultipartPayload) -> Optional[AboutUs]:
        return self._maybe_one(self._request("PUT", "/admin/aboutus", multipart=form), AboutUs)

    # -------- Admin: categories --------

    def list_categories(self, category_type: CategoryType) -> List[Category]:
        payload = self._request("GET", "/admin/categories", params={"type": category_type})
        return self._many(payload, Category)

    def create_category(self, name: str, category_type: CategoryType, icon: Optional[str] = None, order: Optional[int] = None) -> Optional[Category]:
        body = {"name": name, "type": category_type, "icon": icon, "order": order}
        body = {k: v for k, v in body.items() if v is not None}
        return self._maybe_one(self._request("POST", "/admin/categories", json=body), Category)

    def update_category(self, category_id: str, **changes: Any) -> Optional[Category]:
        allowed = {"name": "name", "icon": "icon", "order": "order", "is_active": "isActive"}
        body = {allowed[k]: v for k, v in changes.items() if k in allowed and v is not None}
        return self._maybe_one(self._request("PUT", f"/admin/categories/{category_id}", json=body), Category)

    def delete_category(self, category_id: str) -> None:
        self._request("DELETE", f"/admin/categories/{category_id}")


def get_client() -> ContentApiClient:
    """Client for the current request, carrying the admin token if logged in."""
    client = g.get("content_client")
    if client is not None:
        return client

    token = session.get(TOKEN_SESSION_KEY)
    factory = current_app.extensions.get("content_client_factory")
    if factory is not None:
        client = factory(token)
    else:
        cfg = current_app.config
        client = ContentApiClient(
            base_url=cfg["CONTENT_API_URL"],
            token=token,
            timeout=cfg["CONTENT_API_TIMEOUT"],
        )
    g.content_client = client
    return client
