"""Admin panel routes under /admin.

Login exchanges credentials for a backend token kept in the Flask
session; every other page requires it. A 401 from the backend clears the
token and sends the user back to the login page. Other backend failures
are flashed on an error page with status 502.

Form pages post plain HTML forms. Posts carrying an ``editor`` value
(add/remove/move a repeated row) re-render the form without saving.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for

from firmsite.schemas import AboutUs, Faq, Service
from firmsite.services.content_client import (
    TOKEN_SESSION_KEY,
    AuthRequiredError,
    ContentApiError,
    ContentNotFoundError,
    get_client,
)
from firmsite.services.form_service import (
    FormError,
    ImageUploadError,
    apply_about_us_action,
    apply_sub_service_action,
    build_about_us_payload,
    build_blog_payload,
    build_service_payload,
    collect_sub_services,
    image_previews,
    keep_selected,
    parse_about_us_form,
    parse_blog_form,
    parse_faq_form,
    parse_service_form,
    parse_sub_services,
    read_uploads,
    renumber,
    selected_indices,
)
from firmsite.utils.pagination import clamp_page

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

ADMIN_SESSION_KEY = "admin_user"


def login_required(view: Callable) -> Callable:
    @wraps(view)
    def wrapped(*args: Any, **kwargs: Any):
        if not session.get(TOKEN_SESSION_KEY):
            return redirect(url_for("admin.login", next=request.path))
        return view(*args, **kwargs)

    return wrapped


@admin_bp.errorhandler(AuthRequiredError)
def _auth_expired(e: AuthRequiredError):
    session.pop(TOKEN_SESSION_KEY, None)
    session.pop(ADMIN_SESSION_KEY, None)
    flash("Your session has expired. Please sign in again.", "error")
    return redirect(url_for("admin.login"))


@admin_bp.errorhandler(ContentNotFoundError)
def _not_found(e: ContentNotFoundError):
    flash(e.message or "Record not found.", "error")
    return redirect(url_for("admin.dashboard"))


@admin_bp.errorhandler(ContentApiError)
def _backend_error(e: ContentApiError):
    logger.error("Backend failure on %s: %s", request.path, e)
    flash(e.message or "The content service did not respond.", "error")
    return render_template("admin/error.html"), 502


def _limit(name: str) -> int:
    return int(current_app.config[name])


# -------- Auth --------

@admin_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        return render_template("admin/login.html", email="")

    email = (request.form.get("email") or "").strip()
    password = request.form.get("password") or ""
    if not email or not password:
        flash("Email and password are required.", "error")
        return render_template("admin/login.html", email=email), 400
    try:
        token, admin = get_client().login(email, password)
    except ContentApiError as e:
        logger.info("Admin login failed for %s: %s", email, e)
        flash(e.message or "Invalid credentials.", "error")
        return render_template("admin/login.html", email=email), 401

    session[TOKEN_SESSION_KEY] = token
    session[ADMIN_SESSION_KEY] = admin.model_dump()
    logger.info("Admin %s signed in", admin.email)
    target = request.args.get("next") or ""
    if not target.startswith("/admin"):
        target = url_for("admin.dashboard")
    return redirect(target)


@admin_bp.post("/logout")
def logout():
    session.pop(TOKEN_SESSION_KEY, None)
    session.pop(ADMIN_SESSION_KEY, None)
    return redirect(url_for("admin.login"))


@admin_bp.route("/password", methods=["GET", "POST"])
@login_required
def change_password():
    if request.method == "GET":
        return render_template("admin/password.html")

    current = request.form.get("currentPassword") or ""
    new = request.form.get("newPassword") or ""
    confirm = request.form.get("confirmPassword") or ""
    if not current or not new:
        flash("Both passwords are required.", "error")
    elif new != confirm:
        flash("New passwords do not match.", "error")
    else:
        try:
            flash(get_client().change_password(current, new), "success")
            return redirect(url_for("admin.dashboard"))
        except AuthRequiredError:
            raise
        except ContentApiError as e:
            flash(e.message, "error")
    return render_template("admin/password.html"), 400


# -------- Dashboard --------

@admin_bp.get("/")
@login_required
def dashboard():
    stats = get_client().get_stats()
    return render_template("admin/dashboard.html", stats=stats)


# -------- Services --------

@admin_bp.get("/services")
@login_required
def services():
    page = clamp_page(request.args.get("page"))
    result = get_client().admin_list_services(page=page, limit=_limit("ADMIN_SERVICES_PER_PAGE"))
    return render_template("admin/services.html", result=result)


def _render_service_form(
    service: Optional[Service],
    form: Any,
    sub_services: list,
    *,
    kept: Optional[set] = None,
    expanded: Optional[int] = None,
    status: int = 200,
):
    gallery = service.gallery if service else []
    return render_template(
        "admin/service_form.html",
        service=service,
        form=form,
        sub_services=sub_services,
        previews=image_previews(gallery),
        kept=set(range(len(gallery))) if kept is None else kept,
        expanded=expanded,
        icons=current_app.config["SERVICE_ICONS"],
        max_images=_limit("MAX_IMAGES"),
    ), status


def _save_service(service_id: Optional[str]):
    client = get_client()
    current = client.admin_get_service(service_id) if service_id else None
    stored_gallery = current.gallery if current else []
    kept = selected_indices(request.form.getlist("keepImages"))

    editor = request.form.get("editor")
    if editor:
        subs, expanded = apply_sub_service_action(parse_sub_services(request.form, current), editor)
        return _render_service_form(current, request.form, subs, kept=kept, expanded=expanded)

    try:
        service_form = parse_service_form(request.form)
        subs = collect_sub_services(request.form, request.files, current, current_app.config)
        existing = keep_selected(stored_gallery, request.form.getlist("keepImages"))
        uploads = read_uploads(request.files.getlist("images"), len(existing), current_app.config)
    except (FormError, ImageUploadError) as e:
        flash(str(e), "error")
        subs = parse_sub_services(request.form, current)
        return _render_service_form(current, request.form, subs, kept=kept, status=400)

    payload = build_service_payload(service_form, subs, existing, uploads)
    try:
        if service_id:
            client.update_service(service_id, payload)
        else:
            client.create_service(payload)
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to save service", "error")
        return _render_service_form(current, request.form, subs, kept=kept, status=502)

    logger.info("Service %s saved", service_id or service_form.title)
    flash("Service saved.", "success")
    return redirect(url_for("admin.services"))


@admin_bp.route("/services/new", methods=["GET", "POST"])
@login_required
def new_service():
    if request.method == "POST":
        return _save_service(None)
    return _render_service_form(None, {"isActive": "on", "icon": "FileText", "order": 0}, [])


@admin_bp.route("/services/<service_id>/edit", methods=["GET", "POST"])
@login_required
def edit_service(service_id: str):
    if request.method == "POST":
        return _save_service(service_id)
    service = get_client().admin_get_service(service_id)
    form = service.model_dump(by_alias=True, exclude={"image", "images", "sub_services"})
    form["isActive"] = "on" if service.is_active else ""
    subs = renumber(sorted(service.sub_services, key=lambda s: s.order))
    return _render_service_form(service, form, subs)


@admin_bp.post("/services/<service_id>/delete")
@login_required
def delete_service(service_id: str):
    try:
        get_client().delete_service(service_id)
        flash("Service deleted.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to delete service", "error")
    return redirect(url_for("admin.services"))


# -------- Blogs --------

@admin_bp.get("/blogs")
@login_required
def blogs():
    client = get_client()
    page = clamp_page(request.args.get("page"))
    result = client.admin_list_blogs(page=page, limit=_limit("ADMIN_BLOGS_PER_PAGE"))
    categories = client.list_categories("blog")
    return render_template("admin/blogs.html", result=result, categories=categories)


def _render_blog_form(blog, form, status: int = 200):
    categories = get_client().list_categories("blog")
    return render_template(
        "admin/blog_form.html",
        blog=blog,
        form=form,
        categories=categories,
        excerpt_limit=_limit("EXCERPT_MAX_CHARS"),
    ), status


def _save_blog(blog_id: Optional[str]):
    client = get_client()
    current = client.admin_get_blog(blog_id) if blog_id else None
    try:
        blog_form = parse_blog_form(request.form)
        uploads = read_uploads(request.files.getlist("image"), 0, current_app.config)
        if len(uploads) > 1:
            raise ImageUploadError("Only one cover image is allowed.")
    except (FormError, ImageUploadError) as e:
        flash(str(e), "error")
        return _render_blog_form(current, request.form, status=400)

    payload = build_blog_payload(blog_form, uploads[0] if uploads else None)
    try:
        if blog_id:
            client.update_blog(blog_id, payload)
        else:
            client.create_blog(payload)
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to save blog", "error")
        return _render_blog_form(current, request.form, status=502)

    flash("Blog saved.", "success")
    return redirect(url_for("admin.blogs"))


@admin_bp.route("/blogs/new", methods=["GET", "POST"])
@login_required
def new_blog():
    if request.method == "POST":
        return _save_blog(None)
    return _render_blog_form(None, {"isPublished": "on"})


@admin_bp.route("/blogs/<blog_id>/edit", methods=["GET", "POST"])
@login_required
def edit_blog(blog_id: str):
    if request.method == "POST":
        return _save_blog(blog_id)
    blog = get_client().admin_get_blog(blog_id)
    form = blog.model_dump(by_alias=True, exclude={"image"})
    form["isPublished"] = "on" if blog.is_published else ""
    form["isFeatured"] = "on" if blog.is_featured else ""
    return _render_blog_form(blog, form)


@admin_bp.post("/blogs/<blog_id>/delete")
@login_required
def delete_blog(blog_id: str):
    try:
        get_client().delete_blog(blog_id)
        flash("Blog deleted.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to delete blog", "error")
    return redirect(url_for("admin.blogs"))


# -------- FAQs --------

@admin_bp.get("/faqs")
@login_required
def faqs():
    client = get_client()
    page = clamp_page(request.args.get("page"))
    result = client.admin_list_faqs(page=page, limit=_limit("ADMIN_FAQS_PER_PAGE"))
    categories = client.list_categories("faq")
    active = request.args.get("category") or "All"
    items = result.items if active == "All" else [f for f in result.items if f.category == active]
    return render_template(
        "admin/faqs.html",
        result=result,
        faqs=items,
        categories=categories,
        active_category=active,
    )


def _render_faq_form(faq: Optional[Faq], form, status: int = 200):
    categories = get_client().list_categories("faq")
    return render_template("admin/faq_form.html", faq=faq, form=form, categories=categories), status


def _save_faq(faq_id: Optional[str]):
    client = get_client()
    current = client.admin_get_faq(faq_id) if faq_id else None
    try:
        faq = parse_faq_form(request.form)
    except FormError as e:
        flash(str(e), "error")
        return _render_faq_form(current, request.form, status=400)
    try:
        if faq_id:
            client.update_faq(faq_id, faq)
        else:
            client.create_faq(faq)
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to save FAQ", "error")
        return _render_faq_form(current, request.form, status=502)
    flash("FAQ saved.", "success")
    return redirect(url_for("admin.faqs"))


@admin_bp.route("/faqs/new", methods=["GET", "POST"])
@login_required
def new_faq():
    if request.method == "POST":
        return _save_faq(None)
    return _render_faq_form(None, {"isActive": "on", "order": 0})


@admin_bp.route("/faqs/<faq_id>/edit", methods=["GET", "POST"])
@login_required
def edit_faq(faq_id: str):
    if request.method == "POST":
        return _save_faq(faq_id)
    faq = get_client().admin_get_faq(faq_id)
    form = faq.model_dump(by_alias=True)
    form["isActive"] = "on" if faq.is_active else ""
    return _render_faq_form(faq, form)


@admin_bp.post("/faqs/<faq_id>/delete")
@login_required
def delete_faq(faq_id: str):
    try:
        get_client().delete_faq(faq_id)
        flash("FAQ deleted.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to delete FAQ", "error")
    return redirect(url_for("admin.faqs"))


# -------- Categories (FAQ and blog) --------

CATEGORY_PAGES = {"faq": "admin.faqs", "blog": "admin.blogs"}


def _category_redirect(category_type: str):
    return redirect(url_for(CATEGORY_PAGES.get(category_type, "admin.dashboard")))


@admin_bp.post("/categories/<category_type>")
@login_required
def create_category(category_type: str):
    name = (request.form.get("name") or "").strip()
    if category_type not in CATEGORY_PAGES or not name:
        flash("Category name is required.", "error")
        return _category_redirect(category_type)
    try:
        get_client().create_category(name, category_type, icon=request.form.get("icon") or None)
        flash(f"Category '{name}' added.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to add category", "error")
    return _category_redirect(category_type)


@admin_bp.post("/categories/<category_type>/<category_id>")
@login_required
def update_category(category_type: str, category_id: str):
    name = (request.form.get("name") or "").strip()
    if not name:
        flash("Category name is required.", "error")
        return _category_redirect(category_type)
    try:
        get_client().update_category(category_id, name=name)
        flash("Category updated.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to update category", "error")
    return _category_redirect(category_type)


@admin_bp.post("/categories/<category_type>/<category_id>/delete")
@login_required
def delete_category(category_type: str, category_id: str):
    try:
        get_client().delete_category(category_id)
        flash("Category deleted.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to delete category", "error")
    return _category_redirect(category_type)


# -------- Contacts --------

@admin_bp.get("/contacts")
@login_required
def contacts():
    client = get_client()
    page = clamp_page(request.args.get("page"))
    result = client.admin_list_contacts(page=page, limit=_limit("ADMIN_CONTACTS_PER_PAGE"))
    unread = result.unread_count or 0

    selected = None
    view_id = request.args.get("view")
    if view_id:
        selected = next((c for c in result.items if c.id == view_id), None)
        # Opening a message marks it read
        if selected is not None and not selected.is_read:
            try:
                client.mark_contact_read(selected.id)
                selected = selected.model_copy(update={"is_read": True})
                unread = max(0, unread - 1)
            except AuthRequiredError:
                raise
            except ContentApiError as e:
                logger.warning("Could not mark contact %s read: %s", selected.id, e)

    return render_template("admin/contacts.html", result=result, selected=selected, unread_count=unread)


@admin_bp.post("/contacts/<contact_id>/read")
@login_required
def mark_contact_read(contact_id: str):
    get_client().mark_contact_read(contact_id)
    return redirect(url_for("admin.contacts", page=request.args.get("page", 1)))


@admin_bp.post("/contacts/<contact_id>/delete")
@login_required
def delete_contact(contact_id: str):
    try:
        get_client().delete_contact(contact_id)
        flash("Message deleted.", "success")
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to delete message", "error")
    return redirect(url_for("admin.contacts", page=request.args.get("page", 1)))


# -------- About-Us --------

def _render_about(about: AboutUs, status: int = 200):
    return render_template("admin/about_us.html", about=about, icons=current_app.config["VALUE_ICONS"]), status


@admin_bp.route("/about", methods=["GET", "POST"])
@login_required
def about_us():
    client = get_client()
    if request.method == "GET":
        return _render_about(client.admin_get_about_us() or AboutUs())

    about = parse_about_us_form(request.form)
    editor = request.form.get("editor")
    if editor:
        return _render_about(apply_about_us_action(about, editor))

    try:
        client.update_about_us(build_about_us_payload(about))
    except AuthRequiredError:
        raise
    except ContentApiError as e:
        flash(e.message or "Failed to save About Us", "error")
        return _render_about(about, status=502)
    flash("About Us updated.", "success")
    return redirect(url_for("admin.about_us"))
