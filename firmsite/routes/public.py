"""Public site routes: home, services, blogs, FAQ, about and contact.

Pages are rendered server-side from the content backend. A missing
record renders the not-found page (404); any other backend failure is
logged and rendered as an error page (502). Service and sub-service
bodies are split around their images with ``interleave``.
"""

from __future__ import annotations

import logging
from typing import List

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from pydantic import ValidationError

from firmsite.schemas import Blog, ContactSubmission, Service
from firmsite.services.content_client import ContentApiError, ContentNotFoundError, get_client
from firmsite.services.form_service import validation_messages
from firmsite.services.interleave_service import interleave
from firmsite.utils.pagination import clamp_page

logger = logging.getLogger(__name__)

public_bp = Blueprint("public", __name__)

DEFAULT_HERO_IMAGE = "https://images.pexels.com/photos/3184292/pexels-photo-3184292.jpeg?auto=compress&cs=tinysrgb&w=1920"
HOME_SERVICES = 6
HOME_BLOGS = 3


@public_bp.errorhandler(ContentNotFoundError)
def _not_found(e: ContentNotFoundError):
    return render_template("not_found.html", message=e.message), 404


@public_bp.errorhandler(ContentApiError)
def _backend_error(e: ContentApiError):
    logger.error("Backend failure on %s: %s", request.path, e)
    return render_template("error.html", message="We could not load this page. Please try again shortly."), 502


def _safe_services() -> List[Service]:
    """All services for sidebars and menus; empty when the backend fails."""
    try:
        return get_client().list_services().items
    except ContentApiError as e:
        logger.warning("Could not load services list: %s", e)
        return []


@public_bp.get("/")
def home():
    client = get_client()
    services = _safe_services()[:HOME_SERVICES]
    blogs: List[Blog] = []
    try:
        blogs = client.list_blogs(page=1, limit=HOME_BLOGS).items
    except ContentApiError as e:
        logger.warning("Could not load blogs for home page: %s", e)
    return render_template("home.html", services=services, blogs=blogs)


@public_bp.get("/services")
def services():
    page = clamp_page(request.args.get("page"))
    result = get_client().list_services(page=page, limit=current_app.config["SERVICES_PER_PAGE"])
    return render_template("services.html", result=result)


@public_bp.get("/services/<slug>")
def service_detail(slug: str):
    service = get_client().get_service(slug)
    sections = interleave(service.content, service.images)
    hero = service.image.data_uri if service.image else DEFAULT_HERO_IMAGE
    others = [s for s in _safe_services() if s.slug != slug]
    return render_template(
        "service_detail.html",
        service=service,
        sections=sections,
        hero_image=hero,
        sub_services=service.active_sub_services,
        other_services=others,
    )


@public_bp.get("/services/<service_slug>/<sub_slug>")
def sub_service_detail(service_slug: str, sub_slug: str):
    service = get_client().get_service(service_slug)
    sub = service.find_sub_service(sub_slug)
    if sub is None:
        raise ContentNotFoundError("Sub-service not found", 404)
    siblings = [s for s in service.active_sub_services if s.slug != sub_slug]
    return render_template(
        "sub_service_detail.html",
        service=service,
        sub_service=sub,
        sections=interleave(sub.content, sub.images),
        siblings=siblings,
    )


@public_bp.get("/blogs")
def blogs():
    client = get_client()
    page = clamp_page(request.args.get("page"))
    category = request.args.get("category") or None
    if category == "All":
        category = None
    result = client.list_blogs(page=page, limit=current_app.config["BLOGS_PER_PAGE"], category=category)
    try:
        categories = client.list_blog_categories()
    except ContentApiError as e:
        logger.warning("Could not load blog categories: %s", e)
        categories = []
    return render_template("blogs.html", result=result, categories=categories, active_category=category or "All")


@public_bp.get("/blogs/<slug>")
def blog_detail(slug: str):
    blog = get_client().get_blog(slug)
    return render_template("blog_detail.html", blog=blog)


@public_bp.get("/faq")
def faq():
    groups = get_client().list_faqs()
    categories = groups.categories or ["General"]
    active = request.args.get("category") or categories[0]
    if active not in categories:
        active = categories[0]
    return render_template(
        "faq.html",
        categories=categories,
        active_category=active,
        faqs=groups.for_category(active),
    )


@public_bp.get("/about")
def about():
    about_us = get_client().get_about_us()
    return render_template("about.html", about=about_us)


@public_bp.route("/contact", methods=["GET", "POST"])
def contact():
    if request.method == "GET":
        return render_template("contact.html", form={}, errors=[])

    form = request.form.to_dict()
    try:
        submission = ContactSubmission.model_validate(form)
    except ValidationError as e:
        return render_template("contact.html", form=form, errors=validation_messages(e)), 400

    try:
        message = get_client().submit_contact(submission)
    except ContentApiError as e:
        logger.error("Contact submission failed: %s", e)
        return render_template(
            "contact.html",
            form=form,
            errors=[e.message or "Failed to submit. Please try again."],
        ), 502

    logger.info("Contact submission received from %s", submission.email)
    flash(message, "success")
    return redirect(url_for("public.contact"))
