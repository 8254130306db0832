import base64
from typing import Any, Dict, List, Optional

import pytest

from firmsite import create_app
from firmsite.schemas import (
    AboutUs,
    AdminUser,
    Blog,
    Category,
    Contact,
    Faq,
    FaqGroups,
    ImageAsset,
    Page,
    Service,
    Stats,
)
from firmsite.services.content_client import TOKEN_SESSION_KEY, ContentNotFoundError


def make_image(tag: str = "a") -> ImageAsset:
    # Distinct payloads so ordering can be asserted
    return ImageAsset(data=base64.b64encode(f"image-{tag}".encode()).decode(), content_type="image/png")


def make_service(**overrides: Any) -> Service:
    data = {
        "_id": "svc1",
        "title": "Income Tax",
        "slug": "income-tax",
        "shortDescription": "Returns and planning",
        "content": "<p>One</p><p>Two</p><p>Three</p><p>Four</p>",
        "images": [make_image("a").to_api(), make_image("b").to_api()],
        "subServices": [
            {"_id": "sub1", "title": "ITR Filing", "slug": "itr-filing", "content": "<p>File</p>", "order": 1},
            {"_id": "sub2", "title": "Tax Planning", "slug": "tax-planning", "content": "<p>Plan</p>", "order": 0},
            {"_id": "sub3", "title": "Hidden", "slug": "hidden", "isActive": False, "order": 2},
        ],
    }
    data.update(overrides)
    return Service.model_validate(data)


class FakeClient:
    """In-memory stand-in for ContentApiClient, recording every call."""

    def __init__(self):
        self.token: Optional[str] = None
        self.calls: List[tuple] = []
        self.errors: Dict[str, Exception] = {}
        self.services = [make_service(), make_service(**{"_id": "svc2", "title": "GST", "slug": "gst", "images": []})]
        self.blogs = [
            Blog(id="b1", title="Budget 2025", slug="budget-2025", excerpt="What changed", content="<p>Budget</p>",
                 category="Tax", created_at="2025-03-05T10:00:00Z"),
        ]
        self.faq_groups = FaqGroups(
            categories=["General", "GST"],
            grouped={
                "General": [Faq(id="f1", question="Who are you?", answer="A CA firm.")],
                "GST": [Faq(id="f2", question="What is GST?", answer="A tax.", category="GST")],
            },
        )
        self.categories = {
            "faq": [Category(id="c1", name="GST", type="faq")],
            "blog": [Category(id="c2", name="Tax", type="blog")],
        }
        self.contacts = [
            Contact(id="m1", name="Asha", email="asha@example.com", subject="Audit", message="Need help"),
            Contact(id="m2", name="Ravi", email="ravi@example.com", subject="GST", message="Query", is_read=True),
        ]
        self.about: Optional[AboutUs] = AboutUs(phone="9812345678", email="office@example.com")

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        if name in self.errors:
            raise self.errors[name]

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    # public
    def get_about_us(self):
        self._record("get_about_us")
        return self.about

    def list_services(self, page=None, limit=None):
        self._record("list_services", page, limit)
        return Page[Service](items=self.services, page=page or 1, pages=1, total=len(self.services))

    def get_service(self, slug):
        self._record("get_service", slug)
        for s in self.services:
            if s.slug == slug:
                return s
        raise ContentNotFoundError("Service not found", 404)

    def list_blogs(self, page=1, limit=9, category=None):
        self._record("list_blogs", page, limit, category)
        items = [b for b in self.blogs if category is None or b.category == category]
        return Page[Blog](items=items, page=page, pages=3, total=len(items))

    def get_blog(self, slug):
        self._record("get_blog", slug)
        return self.blogs[0]

    def list_blog_categories(self):
        self._record("list_blog_categories")
        return ["Tax"]

    def list_faqs(self, category=None):
        self._record("list_faqs", category)
        return self.faq_groups

    def submit_contact(self, submission):
        self._record("submit_contact", submission)
        return "Thank you! We will get back to you soon."

    # auth
    def login(self, email, password):
        self._record("login", email, password)
        return "tok-123", AdminUser(email=email, name="Admin")

    def change_password(self, current, new):
        self._record("change_password", current, new)
        return "Password updated."

    # admin
    def get_stats(self):
        self._record("get_stats")
        return Stats(services_count=2, blogs_count=1, contacts_count=2, unread_contacts=1,
                     recent_contacts=self.contacts, recent_blogs=self.blogs)

    def admin_list_services(self, page=1, limit=10):
        self._record("admin_list_services", page, limit)
        return Page[Service](items=self.services, page=page, pages=1, total=len(self.services))

    def admin_get_service(self, service_id):
        self._record("admin_get_service", service_id)
        return self.services[0]

    def create_service(self, payload):
        self._record("create_service", payload)

    def update_service(self, service_id, payload):
        self._record("update_service", service_id, payload)

    def delete_service(self, service_id):
        self._record("delete_service", service_id)

    def admin_list_blogs(self, page=1, limit=10):
        self._record("admin_list_blogs", page, limit)
        return Page[Blog](items=self.blogs, page=page, pages=1, total=len(self.blogs))

    def admin_get_blog(self, blog_id):
        self._record("admin_get_blog", blog_id)
        return self.blogs[0]

    def create_blog(self, payload):
        self._record("create_blog", payload)

    def update_blog(self, blog_id, payload):
        self._record("update_blog", blog_id, payload)

    def delete_blog(self, blog_id):
        self._record("delete_blog", blog_id)

    def list_categories(self, category_type):
        self._record("list_categories", category_type)
        return self.categories[category_type]

    def create_category(self, name, category_type, icon=None, order=None):
        self._record("create_category", name, category_type)

    def update_category(self, category_id, **changes):
        self._record("update_category", category_id, changes)

    def delete_category(self, category_id):
        self._record("delete_category", category_id)

    def admin_list_faqs(self, page=1, limit=50):
        self._record("admin_list_faqs", page, limit)
        items = [f for group in self.faq_groups.grouped.values() for f in group]
        return Page[Faq](items=items, page=page, pages=1, total=len(items))

    def admin_get_faq(self, faq_id):
        self._record("admin_get_faq", faq_id)
        return self.faq_groups.grouped["General"][0]

    def create_faq(self, faq):
        self._record("create_faq", faq)

    def update_faq(self, faq_id, faq):
        self._record("update_faq", faq_id, faq)

    def delete_faq(self, faq_id):
        self._record("delete_faq", faq_id)

    def admin_list_contacts(self, page=1, limit=20):
        self._record("admin_list_contacts", page, limit)
        unread = sum(1 for c in self.contacts if not c.is_read)
        return Page[Contact](items=self.contacts, page=page, pages=1, total=len(self.contacts), unread_count=unread)

    def mark_contact_read(self, contact_id):
        self._record("mark_contact_read", contact_id)

    def delete_contact(self, contact_id):
        self._record("delete_contact", contact_id)

    def admin_get_about_us(self):
        self._record("admin_get_about_us")
        return self.about

    def update_about_us(self, payload):
        self._record("update_about_us", payload)


@pytest.fixture
def fake():
    return FakeClient()


@pytest.fixture
def app(fake):
    def factory(token):
        fake.token = token
        return fake

    app = create_app({"TESTING": True, "SECRET_KEY": "test-secret"}, client_factory=factory)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    with client.session_transaction() as sess:
        sess[TOKEN_SESSION_KEY] = "tok-123"
    return client
