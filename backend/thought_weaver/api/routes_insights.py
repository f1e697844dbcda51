"""Insight API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from thought_weaver.api.dependencies import get_insight_service
from thought_weaver.insights.service import InsightService
from thought_weaver.models.dto import ErrorResponse, InsightRequest, InsightResponse

router = APIRouter()


@router.post(
    "/insights",
    response_model=InsightResponse,
    summary="Find related documents and generate insights",
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def find_connections_and_generate_insights(
    request: InsightRequest,
    service: InsightService = Depends(get_insight_service),
) -> InsightResponse:
    payload = service.find_connections(
        user_id=request.user_id,
        app_id=request.app_id,
        content=request.content,
        title=request.title,
    )
    return InsightResponse(**payload)
