"""Portfolio consultant endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.services import get_app_settings
from app.config import AppSettings
from app.db.session import get_db
from app.schemas import ConsultRequest, ConsultResponse
from app.services import ledger
from app.services.consultant import ConsultantError, ConsultantNotConfiguredError, build_prompt, consult
from app.services.scanner import list_results
from premium_desk import InvalidInputError, aggregate_positions

router = APIRouter()


@router.post("/consult", response_model=ConsultResponse)
async def post_consult(
    payload: ConsultRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
) -> ConsultResponse:
    transactions = await ledger.load_ledger(session)
    try:
        episodes = aggregate_positions(transactions)
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    analyses = await list_results(session)
    prompt = build_prompt(episodes, analyses)
    if payload.preview:
        return ConsultResponse(prompt=prompt)

    try:
        analysis = await run_in_threadpool(consult, prompt, settings, client=request.app.state.llm_client)
    except ConsultantNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ConsultantError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return ConsultResponse(prompt=prompt, analysis=analysis)
