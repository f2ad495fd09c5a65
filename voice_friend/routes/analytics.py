"""
Pipeline analytics endpoints.
"""

from fastapi import APIRouter, Request

from voice_friend.models.schemas import AnalyticsSummary

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/summary", response_model=AnalyticsSummary)
async def get_summary(request: Request):
    pipeline = request.app.state.pipeline
    pipeline_stats = pipeline.stats()
    return AnalyticsSummary(
        dataset=request.app.state.corpus_index.stats(),
        pipeline=pipeline_stats,
        total_requests=pipeline_stats["cache_hits"] + pipeline_stats["cache_misses"],
    )
