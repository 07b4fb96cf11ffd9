"""Interactive simulation session endpoints.

A session wraps one engine instance.  Lifecycle calls map one-to-one onto
the run controller; ticks are driven either by explicit ``/step`` calls or
by a per-session asyncio ticker.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from app.core.rate_limit import headless_limiter, session_limiter
from app.schemas.simulation import (
    ActionResponse,
    BatteryModeRequest,
    ContractRequest,
    OverridesRequest,
    ScoreResponse,
    SessionResponse,
    TickerRequest,
    TickerResponse,
)
from app.services.session_store import (
    OVERRIDES_WHILE_RUNNING,
    SessionStore,
    SimulationSession,
    build_runner,
    store,
)
from engine.simulation.errors import InvalidTransitionError, ScenarioValidationError
from engine.simulation.runner import RunStatus

logger = logging.getLogger(__name__)

router = APIRouter()

CSV_FILENAME = "power-grid-tycoon-log.csv"


def get_store() -> SessionStore:
    return store


def _get_session(session_id: str, sessions: SessionStore) -> SimulationSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


def _session_response(session: SimulationSession, snapshot: dict[str, Any] | None = None) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        status=session.status.value,
        snapshot=snapshot if snapshot is not None else session.runner.current_snapshot(),
    )


def _invalid_scenario(exc: ScenarioValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Scenario is missing required fields", "missing": exc.missing},
    )


# ----------------------------------------------------------------------
# Sessions
# ----------------------------------------------------------------------

@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create session",
    description="Build a new engine from the posted scenario, or from the default scenario when no body is sent.",
)
async def create_session(
    request: Request,
    scenario: dict[str, Any] | None = Body(default=None),
    sessions: SessionStore = Depends(get_store),
):
    session_limiter.check(request)
    try:
        session = sessions.create(scenario)
    except ScenarioValidationError as exc:
        return _invalid_scenario(exc)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return _session_response(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse, summary="Current snapshot")
async def get_session(session_id: str, sessions: SessionStore = Depends(get_store)):
    return _session_response(_get_session(session_id, sessions))


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete session",
)
async def delete_session(session_id: str, sessions: SessionStore = Depends(get_store)):
    if not sessions.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")


# ----------------------------------------------------------------------
# Lifecycle
# ----------------------------------------------------------------------

@router.post(
    "/sessions/{session_id}/start",
    response_model=SessionResponse,
    summary="Start run",
    description="Fix the day-ahead contract and move the run from pre-run to running.",
)
async def start_session(
    session_id: str,
    body: ContractRequest | None = None,
    sessions: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, sessions)
    contract = body or ContractRequest()
    try:
        session.runner.start_run(contract.quantity, contract.price)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _session_response(session)


@router.post("/sessions/{session_id}/pause", response_model=SessionResponse, summary="Pause run")
async def pause_session(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    session.pause()
    return _session_response(session)


@router.post("/sessions/{session_id}/resume", response_model=SessionResponse, summary="Resume run")
async def resume_session(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    if not session.runner.can_resume():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Run cannot be resumed")
    session.runner.resume()
    return _session_response(session)


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse, summary="Reset run")
async def reset_session(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    session.reset()
    return _session_response(session)


@router.post(
    "/sessions/{session_id}/step",
    response_model=SessionResponse,
    summary="Advance one tick",
    description="Runs one tick when the session is running; otherwise returns the latest snapshot.",
)
async def step_session(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    snapshot = session.runner.step()
    return _session_response(session, snapshot)


# ----------------------------------------------------------------------
# Operator actions
# ----------------------------------------------------------------------

@router.post(
    "/sessions/{session_id}/units/{unit_id}/toggle",
    response_model=ActionResponse,
    summary="Toggle thermal unit",
)
async def toggle_unit(session_id: str, unit_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    result = session.toggle_unit(unit_id)
    return ActionResponse(ok=result.ok, reason=result.reason)


@router.post("/sessions/{session_id}/undo", response_model=ActionResponse, summary="Undo last unit toggle")
async def undo_action(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    result = session.undo()
    return ActionResponse(ok=result.ok, reason=result.reason)


@router.put("/sessions/{session_id}/battery-mode", response_model=ActionResponse, summary="Set battery mode")
async def set_battery_mode(
    session_id: str,
    body: BatteryModeRequest,
    sessions: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, sessions)
    result = session.runner.set_battery_mode(body.mode)
    return ActionResponse(ok=result.ok, reason=result.reason)


@router.put(
    "/sessions/{session_id}/overrides",
    response_model=SessionResponse,
    summary="Apply overrides",
    description="Fuel price, reserve percent, outage multiplier and link limit overrides; refused while running.",
)
async def apply_overrides(
    session_id: str,
    body: OverridesRequest,
    sessions: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, sessions)
    if session.status == RunStatus.RUNNING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=OVERRIDES_WHILE_RUNNING)
    session.runner.apply_overrides(gas=body.gas, reserve=body.reserve, outage=body.outage, tx=body.tx)
    return _session_response(session)


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------

@router.get("/sessions/{session_id}/score", response_model=ScoreResponse, summary="Score so far")
async def get_score(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    return ScoreResponse(**session.runner.compute_score().as_dict())


@router.get("/sessions/{session_id}/export.csv", summary="Export tick log as CSV")
async def export_csv(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    return Response(
        content=session.runner.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )


# ----------------------------------------------------------------------
# Ticker
# ----------------------------------------------------------------------

@router.post("/sessions/{session_id}/ticker", response_model=TickerResponse, summary="Start ticker")
async def start_ticker(
    session_id: str,
    body: TickerRequest | None = None,
    sessions: SessionStore = Depends(get_store),
):
    session = _get_session(session_id, sessions)
    if session.status != RunStatus.RUNNING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Start or resume the simulation before starting the ticker.",
        )
    speed = (body or TickerRequest()).speed
    session.pacer.start(speed)
    return TickerResponse(running=True, speed=speed, interval_s=session.pacer.interval)


@router.delete("/sessions/{session_id}/ticker", response_model=TickerResponse, summary="Stop ticker")
async def stop_ticker(session_id: str, sessions: SessionStore = Depends(get_store)):
    session = _get_session(session_id, sessions)
    session.pacer.stop()
    return TickerResponse(running=False, speed=session.pacer.speed, interval_s=session.pacer.interval)


# ----------------------------------------------------------------------
# Headless verification
# ----------------------------------------------------------------------

@router.post(
    "/headless",
    response_model=ScoreResponse,
    summary="Headless run",
    description="Run a fresh engine from pre-run to done without pacing and return its score.",
)
def run_headless(
    request: Request,
    scenario: dict[str, Any] | None = Body(default=None),
):
    # Runs in FastAPI's threadpool, off the event loop.
    headless_limiter.check(request)
    try:
        runner = build_runner(scenario, headless=True)
    except ScenarioValidationError as exc:
        return _invalid_scenario(exc)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    score = runner.run_headless()
    logger.info("Headless run of '%s' scored %.3f", runner.scenario.meta.region, score.total)
    return ScoreResponse(**score.as_dict())
