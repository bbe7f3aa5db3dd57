"""Repository management endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from docpilot.api.deps import (
    get_insights_service,
    get_pipeline,
    get_repository_service,
    get_store,
)
from docpilot.dtos import (
    AnalysisResultResponse,
    CommitListResponse,
    CommitResponse,
    MissingDocumentationResponse,
    ReleaseNotes,
    RepositoryCreateRequest,
    RepositoryResponse,
    SuggestionResponse,
    SyncResponse,
)
from docpilot.repositories.interfaces import Store
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.insights_service import InsightsService
from docpilot.services.repository_service import RepositoryService

router = APIRouter(prefix="/repositories", tags=["Repositories"])


@router.get("", response_model=List[RepositoryResponse])
async def list_repositories(
    active_only: bool = Query(False),
    service: RepositoryService = Depends(get_repository_service),
):
    repositories = await service.list(active_only=active_only)
    return [RepositoryResponse.from_entity(repo) for repo in repositories]


@router.post("", response_model=RepositoryResponse, status_code=status.HTTP_201_CREATED)
async def register_repository(
    payload: RepositoryCreateRequest,
    service: RepositoryService = Depends(get_repository_service),
):
    """Register a repository; fetches metadata and, if configured, installs the push webhook."""
    repository = await service.register(
        payload.git_url,
        provider=payload.provider,
        credential=payload.access_token,
        name=payload.name,
        description=payload.description,
    )
    return RepositoryResponse.from_entity(repository)


@router.get("/{repository_id}", response_model=RepositoryResponse)
async def get_repository(
    repository_id: str = Path(...),
    service: RepositoryService = Depends(get_repository_service),
):
    return RepositoryResponse.from_entity(await service.get(repository_id))


@router.delete("/{repository_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_repository(
    repository_id: str = Path(...),
    service: RepositoryService = Depends(get_repository_service),
):
    """Delete a repository together with its commits, suggestions and analysis results."""
    await service.delete(repository_id)


@router.post("/{repository_id}/deactivate", response_model=RepositoryResponse)
async def deactivate_repository(
    repository_id: str = Path(...),
    service: RepositoryService = Depends(get_repository_service),
):
    return RepositoryResponse.from_entity(await service.deactivate(repository_id))


@router.post("/{repository_id}/sync", response_model=SyncResponse)
async def sync_repository(
    repository_id: str = Path(...),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """Pull commits since the last sync and analyze the new ones."""
    summary = await pipeline.sync_repository(repository_id)
    return SyncResponse(**summary.to_dict())


@router.get("/{repository_id}/commits", response_model=CommitListResponse)
async def list_commits(
    repository_id: str = Path(...),
    limit: int = Query(50, ge=1, le=500),
    include_diff: bool = Query(False),
    service: RepositoryService = Depends(get_repository_service),
    store: Store = Depends(get_store),
):
    repository = await service.get(repository_id)
    commits = await store.commits.list_since(repository.id, limit=limit)
    items = [CommitResponse.from_entity(c, include_diff=include_diff) for c in commits]
    return CommitListResponse(items=items, total=len(items))


@router.post("/{repository_id}/release-notes", response_model=ReleaseNotes)
async def generate_release_notes(
    repository_id: str = Path(...),
    insights: InsightsService = Depends(get_insights_service),
):
    return await insights.generate_release_notes(repository_id)


@router.post(
    "/{repository_id}/detect-missing-docs",
    response_model=MissingDocumentationResponse,
)
async def detect_missing_documentation(
    repository_id: str = Path(...),
    insights: InsightsService = Depends(get_insights_service),
):
    improvements, suggestions = await insights.detect_missing_documentation(
        repository_id
    )
    return MissingDocumentationResponse(
        improvements=improvements,
        suggestions=[SuggestionResponse.from_entity(s) for s in suggestions],
    )


@router.get(
    "/{repository_id}/analysis-results", response_model=List[AnalysisResultResponse]
)
async def list_analysis_results(
    repository_id: str = Path(...),
    result_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(50, ge=1, le=500),
    service: RepositoryService = Depends(get_repository_service),
    store: Store = Depends(get_store),
):
    repository = await service.get(repository_id)
    results = await store.analysis_results.list(
        repository.id, result_type=result_type, limit=limit
    )
    return [AnalysisResultResponse.from_entity(r) for r in results]
