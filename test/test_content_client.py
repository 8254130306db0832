import pytest
import requests

from firmsite.schemas import ContactSubmission, Faq
from firmsite.services.content_client import (
    AuthRequiredError,
    ContentApiClient,
    ContentApiError,
    ContentNotFoundError,
)
from firmsite.services.form_service import MultipartPayload, UploadedImage


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses, token=None):
    session = FakeSession(*responses)
    return ContentApiClient(base_url="http://backend/api/", token=token, timeout=3, session=session), session


def test_list_services_parses_page_envelope():
    client, session = make_client(FakeResponse(200, {
        "success": True,
        "data": [{"_id": "1", "title": "Audit", "slug": "audit", "shortDescription": "Statutory audit"}],
        "pages": 4,
        "total": 31,
    }))
    page = client.list_services(page=2, limit=9)

    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "http://backend/api/services")
    assert kwargs["params"] == {"page": 2, "limit": 9}
    assert kwargs["timeout"] == 3
    assert page.page == 2 and page.pages == 4 and page.total == 31
    assert page.items[0].id == "1"
    assert page.items[0].short_description == "Statutory audit"


def test_none_params_are_dropped():
    client, session = make_client(FakeResponse(200, {"data": []}))
    client.list_blogs(page=1, limit=9, category=None)
    assert session.requests[0][2]["params"] == {"page": 1, "limit": 9}


def test_token_is_sent_as_bearer():
    client, session = make_client(FakeResponse(200, {"data": {"servicesCount": 3}}), token="abc")
    stats = client.get_stats()
    assert session.requests[0][2]["headers"]["Authorization"] == "Bearer abc"
    assert stats.services_count == 3


def test_no_token_no_authorization_header():
    client, session = make_client(FakeResponse(200, {"data": []}))
    client.list_services()
    assert "Authorization" not in session.requests[0][2]["headers"]


@pytest.mark.parametrize(
    "status, exc",
    [(401, AuthRequiredError), (404, ContentNotFoundError), (500, ContentApiError), (422, ContentApiError)],
)
def test_error_statuses_map_to_exceptions(status, exc):
    client, _ = make_client(FakeResponse(status, {"success": False, "message": "Nope"}))
    with pytest.raises(exc) as info:
        client.get_service("missing")
    assert info.value.status == status
    assert info.value.message == "Nope"


def test_error_without_json_body_gets_generic_message():
    client, _ = make_client(FakeResponse(503, None))
    with pytest.raises(ContentApiError, match="Content API error 503"):
        client.list_services()


def test_network_failure_is_wrapped():
    client, _ = make_client(requests.ConnectionError("refused"))
    with pytest.raises(ContentApiError) as info:
        client.list_services()
    assert info.value.status is None


def test_get_service_without_record_is_not_found():
    client, _ = make_client(FakeResponse(200, {"success": True, "data": None}))
    with pytest.raises(ContentNotFoundError):
        client.get_service("x")


def test_list_faqs_groups_and_category_order():
    client, _ = make_client(FakeResponse(200, {
        "grouped": {
            "GST": [{"_id": "2", "question": "Q2", "answer": "A2", "category": "GST"}],
            "General": [{"_id": "1", "question": "Q1", "answer": "A1"}],
        },
        "categories": [{"name": "General"}, {"name": "GST"}],
    }))
    groups = client.list_faqs()
    assert groups.categories == ["General", "GST"]
    assert groups.for_category("GST")[0].question == "Q2"
    assert groups.for_category("Other") == []


def test_blog_categories_accept_names_or_documents():
    client, _ = make_client(FakeResponse(200, {"data": ["Tax", {"name": "Audit"}, {"icon": "x"}]}))
    assert client.list_blog_categories() == ["Tax", "Audit"]


def test_login_returns_token_and_admin():
    client, session = make_client(FakeResponse(200, {"token": "t1", "admin": {"email": "a@b.com", "name": "A"}}))
    token, admin = client.login("a@b.com", "pw")
    assert token == "t1"
    assert admin.name == "A"
    assert session.requests[0][2]["json"] == {"email": "a@b.com", "password": "pw"}


def test_login_without_token_fails():
    client, _ = make_client(FakeResponse(200, {"success": False, "message": "Invalid credentials"}))
    with pytest.raises(ContentApiError, match="Invalid credentials"):
        client.login("a@b.com", "bad")


def test_submit_contact_posts_camel_case_json():
    client, session = make_client(FakeResponse(201, {"success": True, "message": "Thanks"}))
    submission = ContactSubmission(name="Asha", email="asha@example.com", subject="Hi", message="Hello")
    assert client.submit_contact(submission) == "Thanks"
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "http://backend/api/contact")
    assert kwargs["json"] == {"name": "Asha", "email": "asha@example.com", "subject": "Hi", "message": "Hello"}


def test_multipart_writes_send_files_tuples():
    client, session = make_client(FakeResponse(200, {"success": True, "message": "Updated"}))
    form = MultipartPayload()
    form.add("title", "Audit")
    form.add("isActive", True)
    form.add_file("images", UploadedImage("a.png", "image/png", b"\x89PNG"))

    assert client.update_service("s1", form) is None

    method, url, kwargs = session.requests[0]
    assert (method, url) == ("PUT", "http://backend/api/admin/services/s1")
    assert kwargs["files"] == [
        ("title", (None, "Audit")),
        ("isActive", (None, "true")),
        ("images", ("a.png", b"\x89PNG", "image/png")),
    ]
    assert "json" not in kwargs


def test_faq_writes_exclude_id():
    client, session = make_client(FakeResponse(201, {"data": {"_id": "f9", "question": "Q", "answer": "A"}}))
    created = client.create_faq(Faq(id="ignored", question="Q", answer="A", category="GST"))
    body = session.requests[0][2]["json"]
    assert "_id" not in body and "id" not in body
    assert body["category"] == "GST" and body["isActive"] is True
    assert created.id == "f9"


def test_update_category_maps_field_names():
    client, session = make_client(FakeResponse(200, {"success": True}))
    client.update_category("c1", name="Tax", is_active=False, bogus=1)
    assert session.requests[0][2]["json"] == {"name": "Tax", "isActive": False}


def test_contacts_page_carries_unread_count():
    client, _ = make_client(FakeResponse(200, {
        "data": [{"_id": "m1", "name": "A", "isRead": False}],
        "pages": 1,
        "total": 1,
        "unreadCount": 5,
    }))
    page = client.admin_list_contacts()
    assert page.unread_count == 5
    assert page.items[0].is_read is False


def test_about_us_missing_is_none():
    client, _ = make_client(FakeResponse(200, {"success": True, "data": None}))
    assert client.get_about_us() is None
