"""FastAPI web server for the pattern catalog and its review workflow."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pattern_discovery.auth import AdminSessions
from pattern_discovery.config import get_admin_secret
from pattern_discovery.db.database import Database
from pattern_discovery.errors import ConflictError, NotFoundError, ValidationError
from pattern_discovery.models.catalog import Pattern
from pattern_discovery.services.catalog_service import CatalogService
from pattern_discovery.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


# Request Models
class LoginRequest(BaseModel):
    secret: str = ""


class DomainCreate(BaseModel):
    slug: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)


class NodeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CategoryCreate(DomainCreate):
    pass


class PatternCreate(BaseModel):
    label: str = Field(min_length=1)
    description: str = Field(min_length=1)
    intention: str = Field(min_length=1)
    template: str = Field(min_length=1)


class PatternUpdate(BaseModel):
    label: Optional[str] = None
    description: Optional[str] = None
    intention: Optional[str] = None
    template: Optional[str] = None


class SubmissionCreate(BaseModel):
    # Validated by SubmissionInput so that bad bodies map to 400, not 422
    type: str = ""
    label: str = ""
    description: str = ""
    intention: str = ""
    template: str = ""
    domain_slug: Optional[str] = None
    category_slug: Optional[str] = None
    target_pattern_id: Optional[int] = None
    source: Optional[str] = None


class ReviewRequest(BaseModel):
    decision: str = ""


# Dependencies
def get_catalog(request: Request) -> CatalogService:
    return CatalogService(request.app.state.db)


def get_submissions(request: Request) -> SubmissionService:
    return SubmissionService(request.app.state.db)


def is_admin(request: Request) -> bool:
    sessions: AdminSessions = request.app.state.sessions
    return sessions.is_valid(request.cookies.get(SESSION_COOKIE))


def require_admin(admin: bool = Depends(is_admin)) -> None:
    if not admin:
        raise HTTPException(status_code=401, detail="Admin authentication required")


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def _build_router() -> APIRouter:
    router = APIRouter(prefix="/api")

    # -- Auth --

    @router.get("/auth/status")
    def auth_status(request: Request, admin: bool = Depends(is_admin)):
        return {"authenticated": admin, "admin_configured": request.app.state.sessions.configured}

    @router.post("/auth/login")
    def login(body: LoginRequest, request: Request, response: Response):
        sessions: AdminSessions = request.app.state.sessions
        if not sessions.configured:
            raise HTTPException(
                status_code=401,
                detail="Admin access is not configured. Set the ADMIN_SECRET environment variable.",
            )
        token = sessions.login(body.secret)
        if not token:
            raise HTTPException(status_code=401, detail="Invalid secret")
        response.set_cookie(
            SESSION_COOKIE, token, path="/", httponly=True, samesite="strict"
        )
        return {"ok": True}

    @router.post("/auth/logout")
    def logout(request: Request, response: Response):
        token = request.cookies.get(SESSION_COOKIE)
        if token:
            request.app.state.sessions.logout(token)
        response.delete_cookie(SESSION_COOKIE, path="/", httponly=True, samesite="strict")
        return {"ok": True}

    # -- Submissions (public: create, admin: list + review) --

    @router.post("/submissions", status_code=201)
    def create_submission(
        body: SubmissionCreate, svc: SubmissionService = Depends(get_submissions)
    ):
        submission_id = svc.add_submission(body.model_dump())
        return svc.get_submission(submission_id).to_dict()

    @router.get("/submissions", dependencies=[Depends(require_admin)])
    def list_submissions(
        status: Optional[str] = None, svc: SubmissionService = Depends(get_submissions)
    ):
        return [
            {**s.to_dict(), "impact": svc.get_submission_impact(s.id).to_dict()}
            for s in svc.get_submissions(status)
        ]

    @router.post("/submissions/{submission_id}/review", dependencies=[Depends(require_admin)])
    def review_submission(
        submission_id: int,
        body: ReviewRequest,
        svc: SubmissionService = Depends(get_submissions),
    ):
        return svc.review_submission(submission_id, body.decision).to_dict()

    # -- Domains --

    @router.get("/domains")
    def list_domains(catalog: CatalogService = Depends(get_catalog)):
        return [d.to_dict() for d in catalog.get_domains()]

    @router.get("/domains/{slug}")
    def get_domain(slug: str, catalog: CatalogService = Depends(get_catalog)):
        domain = catalog.get_domain(slug)
        if not domain:
            raise HTTPException(status_code=404, detail=f'Domain not found: "{slug}"')
        return domain.to_dict()

    @router.post("/domains", status_code=201)
    def create_domain(body: DomainCreate, catalog: CatalogService = Depends(get_catalog)):
        catalog.add_domain(body.slug, body.name, body.description)
        return body.model_dump()

    @router.put("/domains/{slug}")
    def update_domain(slug: str, body: NodeUpdate, catalog: CatalogService = Depends(get_catalog)):
        catalog.update_domain(slug, name=body.name, description=body.description)
        return catalog.get_domain(slug).to_dict()

    @router.delete("/domains/{slug}")
    def delete_domain(slug: str, catalog: CatalogService = Depends(get_catalog)):
        catalog.delete_domain(slug)
        return {"ok": True}

    # -- Categories --

    @router.get("/domains/{slug}/categories")
    def list_categories(slug: str, catalog: CatalogService = Depends(get_catalog)):
        return [c.to_dict() for c in catalog.get_categories(slug)]

    @router.post("/domains/{slug}/categories", status_code=201)
    def create_category(
        slug: str, body: CategoryCreate, catalog: CatalogService = Depends(get_catalog)
    ):
        catalog.add_category(slug, body.slug, body.name, body.description)
        return body.model_dump()

    @router.put("/domains/{slug}/categories/{cat_slug}")
    def update_category(
        slug: str, cat_slug: str, body: NodeUpdate, catalog: CatalogService = Depends(get_catalog)
    ):
        catalog.update_category(slug, cat_slug, name=body.name, description=body.description)
        updated = next(c for c in catalog.get_categories(slug) if c.slug == cat_slug)
        return updated.to_dict()

    @router.delete("/domains/{slug}/categories/{cat_slug}")
    def delete_category(slug: str, cat_slug: str, catalog: CatalogService = Depends(get_catalog)):
        catalog.delete_category(slug, cat_slug)
        return {"ok": True}

    # -- Patterns --

    @router.post("/domains/{slug}/categories/{cat_slug}/patterns", status_code=201)
    def create_pattern(
        slug: str, cat_slug: str, body: PatternCreate, catalog: CatalogService = Depends(get_catalog)
    ):
        pattern = Pattern(**body.model_dump())
        catalog.add_pattern(slug, cat_slug, pattern)
        return pattern.to_dict()

    @router.get("/patterns/{pattern_id}")
    def get_pattern(pattern_id: int, catalog: CatalogService = Depends(get_catalog)):
        pattern = catalog.get_pattern(pattern_id)
        if not pattern:
            raise HTTPException(status_code=404, detail=f"Pattern not found: {pattern_id}")
        return pattern.to_dict()

    @router.put("/patterns/{pattern_id}")
    def update_pattern(
        pattern_id: int, body: PatternUpdate, catalog: CatalogService = Depends(get_catalog)
    ):
        catalog.update_pattern(pattern_id, **body.model_dump())
        return catalog.get_pattern(pattern_id).to_dict()

    @router.delete("/patterns/{pattern_id}")
    def delete_pattern(pattern_id: int, catalog: CatalogService = Depends(get_catalog)):
        catalog.delete_pattern(pattern_id)
        return {"ok": True}

    return router


def create_app(db: Optional[Database] = None, sessions: Optional[AdminSessions] = None) -> FastAPI:
    """
    Build the application.  Without an explicit ``db`` the store at the
    configured path is opened and initialised on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = db is None
        if owned:
            app.state.db = Database()
            app.state.db.init()
            logger.info(f"Server started - DB: {app.state.db.path}")
        yield
        if owned:
            app.state.db.close()
            logger.info("Server shutting down")

    app = FastAPI(
        title="Pattern Discovery API",
        description="Domain > Category > Pattern catalog with submission review",
        version="0.1.0",
        lifespan=lifespan,
    )
    if db is not None:
        if not db.ready:
            db.init()
        app.state.db = db
    app.state.sessions = sessions or AdminSessions(get_admin_secret())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(NotFoundError, _error_handler(404))
    app.add_exception_handler(ConflictError, _error_handler(409))
    app.add_exception_handler(ValidationError, _error_handler(400))
    app.include_router(_build_router())
    return app


app = create_app()
