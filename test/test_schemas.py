import pydantic
import pytest

from firmsite.schemas import DEFAULT_IMAGE_TYPE, ContactSubmission, ImageAsset, ImageSection, Service

from conftest import make_image, make_service


def test_image_asset_requires_image_media_type():
    with pytest.raises(pydantic.ValidationError):
        ImageAsset(data="eA==", content_type="application/pdf")


def test_image_asset_data_uri():
    img = ImageAsset.model_validate({"data": "eA==", "contentType": "image/png"})
    assert img.data_uri == "data:image/png;base64,eA=="


def test_service_reads_camel_case_and_mongo_id():
    service = make_service()
    assert service.id == "svc1"
    assert service.short_description == "Returns and planning"
    assert len(service.sub_services) == 3


def test_active_sub_services_sorted_by_order():
    assert [s.slug for s in make_service().active_sub_services] == ["tax-planning", "itr-filing"]


def test_gallery_falls_back_to_legacy_image():
    legacy = make_image("legacy")
    service = make_service(images=[], image=legacy.to_api())
    assert service.gallery == [legacy]


def test_legacy_image_without_media_type_gets_default():
    service = Service.model_validate({"title": "X", "image": {"data": "eA=="}})
    assert service.image.content_type == DEFAULT_IMAGE_TYPE
    assert service.image.data_uri == "data:image/jpeg;base64,eA=="

    empty_type = ImageAsset.model_validate({"data": "eA==", "contentType": ""})
    assert empty_type.content_type == DEFAULT_IMAGE_TYPE


def test_empty_legacy_image_is_none():
    service = Service.model_validate({"title": "X", "image": {"data": None, "contentType": None}})
    assert service.image is None
    assert service.gallery == []


def test_find_sub_service():
    service = make_service()
    assert service.find_sub_service("itr-filing").id == "sub1"
    assert service.find_sub_service("nope") is None
    assert service.find_sub_service_by_id("sub2").slug == "tax-planning"


def test_image_section_dumps_with_wire_names():
    dumped = ImageSection(image=make_image("a")).model_dump(by_alias=True)
    assert dumped["type"] == "image"
    assert dumped["image"]["contentType"] == "image/png"


def test_contact_submission_validation():
    sub = ContactSubmission.model_validate(
        {"name": " Asha ", "email": "asha@example.com", "phone": " ", "subject": "Hi", "message": "Hello"}
    )
    assert sub.name == "Asha"
    assert sub.phone is None

    with pytest.raises(pydantic.ValidationError):
        ContactSubmission(name="A", email="not-an-email", subject="S", message="M")
    with pytest.raises(pydantic.ValidationError):
        ContactSubmission(name="", email="a@b.com", subject="S", message="M")
