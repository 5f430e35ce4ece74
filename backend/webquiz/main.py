"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the quiz service. Controllers
are intentionally thin: they accept requests, delegate to services, and
translate service outcomes into HTTP status codes.

Endpoints implemented:
- POST /api/register
- POST /api/quizzes
- GET /api/quizzes?page=N
- GET /api/quizzes/completed?page=N
- GET /api/quizzes/{id}
- POST /api/quizzes/{id}/solve
- DELETE /api/quizzes/{id}
- GET /actuator/health, GET /actuator/info, GET /h2-console
- anything else under /actuator/ or /h2-console/ (admin only, then 404)
"""

from fastapi import FastAPI, Depends, HTTPException, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func
from sqlmodel import Session, SQLModel, select
import os
import json
import logging
import time
import uuid
from .database import engine, create_db_and_tables, get_session
from . import services, models, schemas
from .auth import get_current_user, require_admin
from .config import settings

app = FastAPI(title="Web Quiz Engine API", version=settings.APP_VERSION)
logger = logging.getLogger("webquiz.api")
if not logger.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

_LOGGED_PREFIXES = ("/api", "/actuator", "/h2-console")
# ids and page numbers are bound as 32-bit integers
MAX_INT = 2 ** 31 - 1
MIN_INT = -(2 ** 31)
_ADMIN_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def bootstrap_admin(email: str, password: str):
    """Create or promote the configured administrator at startup.

    A new account needs a valid password; without one the bootstrap is
    skipped with a warning.
    """
    if not email:
        return None
    with Session(engine) as session:
        try:
            return services.UserService(session).ensure_admin(email, password)
        except ValueError as e:
            logger.warning("admin_bootstrap_skipped %s", e)
            return None


bootstrap_admin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)


def _request_event(request: Request, req_id: str, started: float, **extra) -> str:
    payload = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        **extra,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    return json.dumps(payload, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    logged = request.url.path.startswith(_LOGGED_PREFIXES)
    try:
        response = await call_next(request)
    except Exception:
        if logged:
            logger.exception("request_failed %s", _request_event(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if logged:
        logger.info("request_done %s", _request_event(request, req_id, started, status_code=response.status_code))
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with one entry per failing field."""
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"detail": errors})


@app.post('/api/register')
def register(payload: schemas.UserIn, db: Session = Depends(get_session)):
    """Register a new user.

    Responds 200 with an empty body, or 400 if the email is taken.
    """
    if not services.UserService(db).register(payload):
        raise HTTPException(status_code=400, detail=f'User {payload.email} is already registered.')
    return Response(status_code=200)


@app.post('/api/quizzes', response_model=schemas.QuizOut)
def create_quiz(payload: schemas.QuizIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Store a quiz owned by the caller and return it without its answer."""
    return services.QuizService(db).create(payload, user)


@app.get('/api/quizzes', response_model=schemas.Page[schemas.QuizOut])
def list_quizzes(page: int = Query(0, ge=0, le=MAX_INT), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return one page (10 items) of all quizzes."""
    return services.QuizService(db).list_page(page)


@app.get('/api/quizzes/completed', response_model=schemas.Page[schemas.CompletionOut])
def list_completions(page: int = Query(0, ge=0, le=MAX_INT), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return one page of the caller's solved quizzes, most recent first."""
    return services.CompletionService(db).list_for_user(page, user)


@app.get('/api/quizzes/{quiz_id}', response_model=schemas.QuizOut)
def get_quiz(quiz_id: int = Path(..., ge=MIN_INT, le=MAX_INT), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    try:
        return services.QuizService(db).get(quiz_id)
    except services.QuizNotFound:
        raise HTTPException(status_code=404, detail='Quiz not found.')


@app.post('/api/quizzes/{quiz_id}/solve', response_model=schemas.QuizResult)
def solve_quiz(payload: schemas.AnswerIn, quiz_id: int = Path(..., ge=MIN_INT, le=MAX_INT), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Check the submitted option indices against the quiz's answer."""
    try:
        return services.QuizService(db).answer(payload, quiz_id, user)
    except services.QuizNotFound:
        raise HTTPException(status_code=404, detail='Quiz not found.')


@app.delete('/api/quizzes/{quiz_id}', status_code=204)
def delete_quiz(quiz_id: int = Path(..., ge=MIN_INT, le=MAX_INT), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Delete a quiz created by the caller along with its completion records.

    Responds 204 on success, 403 (empty body) for someone else's quiz and
    404 for an unknown id.
    """
    try:
        outcome = services.QuizService(db).delete(quiz_id, user)
    except services.QuizNotFound:
        raise HTTPException(status_code=404, detail='Quiz not found.')
    if outcome is services.DeleteOutcome.FORBIDDEN:
        return Response(status_code=403)
    return Response(status_code=204)


@app.get('/actuator/health')
def actuator_health(db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Report application and database status."""
    db.connection().exec_driver_sql("SELECT 1")
    return {"status": "UP", "database": engine.dialect.name}


@app.get('/actuator/info')
def actuator_info(admin: models.User = Depends(require_admin)):
    return {"app": app.title, "version": settings.APP_VERSION, "env": settings.ENV}


@app.get('/h2-console')
def database_console(db: Session = Depends(get_session), admin: models.User = Depends(require_admin)):
    """Return the row count of every table for quick inspection."""
    counts = {}
    for table in SQLModel.metadata.sorted_tables:
        counts[table.name] = db.exec(select(func.count()).select_from(table)).one()
    return {"database": engine.dialect.name, "tables": counts}


@app.api_route('/actuator/{rest:path}', methods=_ADMIN_METHODS)
@app.api_route('/h2-console/{rest:path}', methods=_ADMIN_METHODS)
def admin_fallback(rest: str, admin: models.User = Depends(require_admin)):
    """Keep unknown management paths behind the admin check."""
    raise HTTPException(status_code=404, detail='Not Found')
