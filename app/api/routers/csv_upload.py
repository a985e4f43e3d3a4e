"""
CSV upload endpoints: submit, progress, review, commit, delete, and history.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Query, Response, UploadFile, status

from app.api.dependencies import (
    CurrentUser,
    get_csv_upload,
    get_current_user,
    read_csv_upload,
    require_data_access,
)
from app.domain.errors import (
    CommitBatchFailed,
    CommitInProgress,
    NoDataType,
    NoStagedData,
    UnknownDataType,
    UploadNotCommittable,
)
from app.schemas.csv_upload import (
    CommitSummaryResponse,
    CSVUploadAcceptedResponse,
    ProcessingResultResponse,
    UploadHistoryItem,
    UploadHistoryResponse,
    UploadProgressResponse,
)
from app.services.csv_upload_service import (
    CSVUploadService,
    FastAPIBackgroundTaskExecutor,
    get_csv_upload_service,
)

router = APIRouter(prefix="/uploads", tags=["csv-uploads"])


@router.post(
    "/csv",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=CSVUploadAcceptedResponse,
)
def upload_csv(
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(require_data_access),
    data_type: str = Form(..., description="kpi_metrics, content_performance, risks, bugs_sprints, infra_metrics"),
    file: UploadFile = Depends(get_csv_upload),
    content: bytes = Depends(read_csv_upload),
    service: CSVUploadService = Depends(get_csv_upload_service),
) -> CSVUploadAcceptedResponse:
    filename = file.filename or "upload.csv"
    try:
        upload_id = service.submit_upload(
            filename=filename,
            content=content,
            data_type=data_type,
            user_id=user.user_id,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
        )
    except UnknownDataType as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return CSVUploadAcceptedResponse(
        upload_id=upload_id,
        filename=filename,
        data_type=data_type.strip(),
    )


@router.get("/history", response_model=UploadHistoryResponse)
def get_upload_history(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    service: CSVUploadService = Depends(get_csv_upload_service),
) -> UploadHistoryResponse:
    uploaded_by = None if user.can_view_all_uploads else user.user_id
    entries, total = service.list_history(uploaded_by=uploaded_by, page=page, page_size=page_size)
    return UploadHistoryResponse(
        items=[UploadHistoryItem(**asdict(entry)) for entry in entries],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{upload_id}/progress",
    response_model=UploadProgressResponse,
    response_model_exclude_none=True,
)
def get_upload_progress(
    upload_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CSVUploadService = Depends(get_csv_upload_service),
) -> UploadProgressResponse:
    progress = service.get_progress(upload_id)
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No progress found for upload {upload_id}",
        )
    return UploadProgressResponse.model_validate(progress.to_payload())


@router.get("/{upload_id}/result", response_model=ProcessingResultResponse)
def get_upload_result(
    upload_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CSVUploadService = Depends(get_csv_upload_service),
) -> ProcessingResultResponse:
    result = service.get_result(upload_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No processing result found for upload {upload_id}",
        )
    return ProcessingResultResponse.model_validate(result.to_dict())


@router.post("/{upload_id}/commit", response_model=CommitSummaryResponse)
def commit_upload(
    upload_id: str,
    user: CurrentUser = Depends(require_data_access),
    service: CSVUploadService = Depends(get_csv_upload_service),
) -> CommitSummaryResponse:
    try:
        summary = service.commit_data(upload_id, user.user_id)
    except (NoStagedData, NoDataType) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (UploadNotCommittable, CommitInProgress) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except CommitBatchFailed as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": str(exc),
                "batch_index": exc.batch_index,
                "committed_rows": exc.committed_rows,
            },
        ) from exc

    return CommitSummaryResponse(
        message=f"Successfully committed {summary.committed_rows} rows",
        **asdict(summary),
    )


@router.delete("/{upload_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_upload(
    upload_id: str,
    user: CurrentUser = Depends(require_data_access),
    service: CSVUploadService = Depends(get_csv_upload_service),
) -> Response:
    service.delete_upload(upload_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
