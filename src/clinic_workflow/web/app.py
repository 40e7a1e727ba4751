# src/clinic_workflow/web/app.py

"""
HTTP layer.

Thin FastAPI routing over the lifecycle controller. The id in a link segment
(`x<id>x<token>`) is trusted as-is; the token part is not checked.

Error mapping:
    RecordNotFound                                    -> 404
    MalformedInput (and request validation errors)    -> 400
    InvalidTransition                                 -> 409
    DuplicateIdentity / StorageUnavailable / other    -> 500
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..core.state import AppState
from ..tasks.inspection import decode_check_state, failed_items
from ..tasks.task_errors import (
    InvalidTransition,
    MalformedInput,
    RecordNotFound,
    TaskError,
)
from ..tasks.task_models import TaskRecord
from ..tasks.tokens import CUSTOMER, STAFF, LinkStage, build_link, parse_link_segment
from .schemas import (
    CompletionRequest,
    CompletionResponse,
    CreateTaskResponse,
    IntakeRequest,
    TaskView,
)

logger = logging.getLogger(__name__)


def _status_for(exc: TaskError) -> int:
    if isinstance(exc, RecordNotFound):
        return 404
    if isinstance(exc, MalformedInput):
        return 400
    if isinstance(exc, InvalidTransition):
        return 409
    return 500


def _error_body(message: str, code: str) -> dict[str, object]:
    return {"ok": False, "error": message, "code": code}


def _inspection_of(record: TaskRecord) -> dict[str, dict[str, bool] | None]:
    out: dict[str, dict[str, bool] | None] = {}
    for key, raw in (("initial", record.initial_check_state), ("final", record.final_check_state)):
        if raw is None:
            out[key] = None
            continue
        try:
            out[key] = decode_check_state(raw)
        except MalformedInput as e:
            logger.warning("Task id=%s has an undecodable %s check state: %s", record.id, key, e)
            out[key] = None
    return out


def _failed_of(record: TaskRecord) -> dict[str, list[str] | None]:
    out: dict[str, list[str] | None] = {}
    for key, raw in (("initial", record.initial_check_state), ("final", record.final_check_state)):
        try:
            out[key] = None if raw is None else failed_items(raw)
        except MalformedInput:
            out[key] = None
    return out


async def _read_timestamp(request: Request) -> str:
    try:
        raw = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInput("confirmation body is not valid UTF-8") from e
    if not raw.strip():
        raise MalformedInput("confirmation timestamp is empty")
    return raw


def create_app(state: AppState) -> FastAPI:
    settings = state.settings
    controller = state.controller
    tokens = state.tokens

    app = FastAPI(title=str(getattr(settings, "app_name", "clinic-workflow")))
    app.state.clinic = state

    origins = list(getattr(settings, "cors_origins", ["*"]) or ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TaskError)
    async def _task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content=_error_body(str(exc), exc.code))

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("%s %s rejected: invalid payload", request.method, request.url.path)
        missing = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        message = f"invalid payload: {', '.join(missing)}" if missing else "invalid payload"
        return JSONResponse(status_code=400, content=_error_body(message, MalformedInput.code))

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    @app.post("/staff/create_task", response_model=CreateTaskResponse)
    def create_task(body: IntakeRequest) -> CreateTaskResponse:
        record = controller.create_with_intake(body.to_report())
        token = tokens.derive(record.id, LinkStage.INITIAL, record.initial_post or "")
        return CreateTaskResponse(
            id=record.id,
            uri_customer=build_link(CUSTOMER, LinkStage.INITIAL.path_name, record.id, token),
            uri_staff=build_link(STAFF, LinkStage.FINAL.path_name, record.id, token),
        )

    @app.post("/customer/initial/{segment}/confirmed")
    async def confirm_initial(segment: str, request: Request) -> dict[str, bool]:
        task_id = parse_link_segment(segment)
        stamp = await _read_timestamp(request)
        await run_in_threadpool(controller.confirm_intake, task_id, stamp)
        return {"ok": True}

    @app.post("/staff/final/{segment}", response_model=CompletionResponse)
    def post_final(segment: str, body: CompletionRequest) -> CompletionResponse:
        task_id = parse_link_segment(segment)
        record = controller.submit_completion(task_id, body.to_report())
        token = tokens.derive(record.id, LinkStage.FINAL, record.final_post or "")
        return CompletionResponse(
            uri=build_link(CUSTOMER, LinkStage.FINAL.path_name, record.id, token)
        )

    @app.post("/customer/final/{segment}/confirmed")
    async def confirm_final(segment: str, request: Request) -> dict[str, bool]:
        task_id = parse_link_segment(segment)
        stamp = await _read_timestamp(request)
        await run_in_threadpool(controller.confirm_completion, task_id, stamp)
        return {"ok": True}

    @app.get("/task/{segment}", response_model=TaskView)
    def show_task(segment: str) -> TaskView:
        record = controller.fetch(parse_link_segment(segment))
        return TaskView(
            **record.to_dict(),
            inspection=_inspection_of(record),
            failed=_failed_of(record),
        )

    return app
