"""Server-rendered admin and staff pages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.auth import extract_token, find_user_by_email, resolve_identity
from apps.api.app.core.config import get_settings
from apps.api.app.core.enums import MANAGEMENT_ROLES, DocumentStatus, DocumentType
from apps.api.app.db.models import Document, User
from apps.api.app.db.session import get_db_session
from apps.api.app.services.acknowledgments import acknowledge_documents, pending_documents
from apps.api.app.services.audit import log_structured_event

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(include_in_schema=False)

LOGIN_URL = "/admin/login"
ADMIN_HOME_URL = "/admin"
STAFF_HOME_URL = "/admin/staff"
UNAUTHORIZED_URL = "/unauthorized"


@dataclass(frozen=True)
class _WebAuth:
    """A resolved user, or the page to send the browser to instead."""

    user: User | None = None
    redirect_to: str | None = None


def _resolve(request: Request, db: Session) -> _WebAuth:
    settings = get_settings()
    token = extract_token(request, settings=settings)
    if not token:
        return _WebAuth(redirect_to=LOGIN_URL)
    try:
        identity = resolve_identity(token, settings=settings)
    except HTTPException as exc:
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            return _WebAuth(redirect_to=LOGIN_URL)
        raise
    user = find_user_by_email(db, identity.email)
    if user is None:
        return _WebAuth(redirect_to=UNAUTHORIZED_URL)
    return _WebAuth(user=user)


def _home_for(user: User) -> str:
    return ADMIN_HOME_URL if user.role in MANAGEMENT_ROLES else STAFF_HOME_URL


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _require_manager(request: Request, db: Session) -> User | RedirectResponse:
    auth = _resolve(request, db)
    if auth.user is None:
        return _redirect(auth.redirect_to or LOGIN_URL)
    if auth.user.role not in MANAGEMENT_ROLES:
        return _redirect(STAFF_HOME_URL)
    return auth.user


def _require_user(request: Request, db: Session) -> User | RedirectResponse:
    auth = _resolve(request, db)
    if auth.user is None:
        return _redirect(auth.redirect_to or LOGIN_URL)
    return auth.user


@router.get("/admin/login", response_class=HTMLResponse)
def login_page(request: Request, db: Session = Depends(get_db_session)) -> Response:
    auth = _resolve(request, db)
    if auth.user is not None:
        return _redirect(_home_for(auth.user))
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/admin/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    token: str = Form(""),
    db: Session = Depends(get_db_session),
) -> Response:
    settings = get_settings()
    token = token.strip()
    error = None
    user = None
    if not token:
        error = "A sign-in token is required."
    else:
        try:
            identity = resolve_identity(token, settings=settings)
        except HTTPException:
            error = "The sign-in token was rejected."
        else:
            user = find_user_by_email(db, identity.email)

    if error is not None:
        return templates.TemplateResponse(
            request, "login.html", {"error": error}, status_code=status.HTTP_401_UNAUTHORIZED
        )

    response = _redirect(_home_for(user) if user is not None else UNAUTHORIZED_URL)
    response.set_cookie(settings.auth_cookie_name, token, httponly=True, samesite="lax")
    return response


@router.get("/admin/logout")
def logout() -> Response:
    response = _redirect(LOGIN_URL)
    response.delete_cookie(get_settings().auth_cookie_name)
    return response


@router.get("/admin", response_class=HTMLResponse)
def admin_home(request: Request, db: Session = Depends(get_db_session)) -> Response:
    user = _require_manager(request, db)
    if isinstance(user, Response):
        return user
    documents = db.scalars(select(Document)).unique().all()
    counts = {item.value: 0 for item in DocumentStatus}
    for document in documents:
        counts[document.status] = counts.get(document.status, 0) + 1
    return templates.TemplateResponse(
        request, "admin_home.html", {"user": user, "status_counts": counts}
    )


@router.get("/admin/documents/documents", response_class=HTMLResponse)
def admin_documents(
    request: Request,
    created: str | None = None,
    db: Session = Depends(get_db_session),
) -> Response:
    user = _require_manager(request, db)
    if isinstance(user, Response):
        return user
    documents = db.scalars(
        select(Document).order_by(Document.title.asc(), Document.id.asc())
    ).unique().all()
    return templates.TemplateResponse(
        request,
        "documents.html",
        {
            "user": user,
            "documents": documents,
            "document_types": [item.value for item in DocumentType],
            "document_statuses": [item.value for item in DocumentStatus],
            "created": created,
        },
    )


@router.post("/admin/documents/documents")
def admin_create_document(
    request: Request,
    title: str = Form(""),
    document_type: str = Form(DocumentType.POLICY.value),
    version: str = Form("1.0"),
    document_status: str = Form(DocumentStatus.DRAFT.value, alias="status"),
    requires_acknowledgement: bool = Form(False),
    db: Session = Depends(get_db_session),
) -> Response:
    user = _require_manager(request, db)
    if isinstance(user, Response):
        return user
    if (
        not title.strip()
        or not version.strip()
        or document_type not in {item.value for item in DocumentType}
        or document_status not in {item.value for item in DocumentStatus}
    ):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="invalid document"
        )

    document = Document(
        title=title.strip(),
        document_type=document_type,
        version=version.strip(),
        status=document_status,
        owner_user_id=user.id,
        requires_acknowledgement=requires_acknowledgement,
    )
    db.add(document)
    db.commit()
    log_structured_event(
        "document_created", document_id=document.id, actor_user_id=user.id, source="web"
    )
    return _redirect(f"/admin/documents/documents?created={document.id}")


@router.get("/admin/staff", response_class=HTMLResponse)
def staff_home(request: Request, db: Session = Depends(get_db_session)) -> Response:
    user = _require_user(request, db)
    if isinstance(user, Response):
        return user
    return templates.TemplateResponse(
        request,
        "staff_home.html",
        {"user": user, "pending_count": len(pending_documents(db, user))},
    )


@router.get("/admin/staff/documents", response_class=HTMLResponse)
def staff_documents(request: Request, db: Session = Depends(get_db_session)) -> Response:
    user = _require_user(request, db)
    if isinstance(user, Response):
        return user
    documents = db.scalars(
        select(Document)
        .where(Document.status == DocumentStatus.APPROVED.value)
        .order_by(Document.title.asc(), Document.id.asc())
    ).unique().all()
    return templates.TemplateResponse(
        request, "staff_documents.html", {"user": user, "documents": documents}
    )


@router.get("/admin/staff/acknowledgments", response_class=HTMLResponse)
def staff_acknowledgments(
    request: Request,
    acknowledged: int | None = None,
    db: Session = Depends(get_db_session),
) -> Response:
    user = _require_user(request, db)
    if isinstance(user, Response):
        return user
    return templates.TemplateResponse(
        request,
        "staff_acknowledgments.html",
        {"user": user, "documents": pending_documents(db, user), "acknowledged": acknowledged},
    )


@router.post("/admin/staff/acknowledgments")
def staff_acknowledge_all(request: Request, db: Session = Depends(get_db_session)) -> Response:
    user = _require_user(request, db)
    if isinstance(user, Response):
        return user
    created = acknowledge_documents(db, user)
    log_structured_event(
        "documents_acknowledged",
        user_id=user.id,
        document_ids=[item.document_id for item in created],
        source="web",
    )
    return _redirect(f"/admin/staff/acknowledgments?acknowledged={len(created)}")


@router.get("/unauthorized", response_class=HTMLResponse)
def unauthorized(request: Request) -> Response:
    return templates.TemplateResponse(
        request, "unauthorized.html", {}, status_code=status.HTTP_403_FORBIDDEN
    )
