"""Files API routes."""
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response, UploadFile, File as FastAPIFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from droplite.models.file_record import FileRecord
from droplite.schemas.common import ErrorResponse
from droplite.schemas.file import FileResponse
from droplite.services.blob_store import BlobReader
from droplite.services.file_service import FileService

router = APIRouter(prefix="/files", tags=["files"])

NOT_FOUND = {404: {"model": ErrorResponse}}


def get_file_service(request: Request) -> FileService:
    """FastAPI dependency returning the service built at startup."""
    return request.app.state.file_service


async def _upload_chunks(file: UploadFile, chunk_size: int):
    while chunk := await file.read(chunk_size):
        yield chunk


def _content_disposition(disposition: str, filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{filename}"'


def _to_response(request: Request, record: FileRecord) -> FileResponse:
    response = FileResponse.model_validate(record)
    response.download_url = str(request.url_for("download_file", file_id=record.id))
    response.view_url = str(request.url_for("view_file", file_id=record.id))
    return response


def _stream(reader: BlobReader, media_type: str, headers: dict[str, str]) -> StreamingResponse:
    return StreamingResponse(
        reader,
        media_type=media_type,
        headers=headers,
        background=BackgroundTask(reader.aclose),
    )


@router.post("/upload", response_model=FileResponse, responses={400: {"model": ErrorResponse}})
async def upload_file(
    request: Request,
    file: UploadFile = FastAPIFile(...),
    service: FileService = Depends(get_file_service),
):
    """Upload a file and create a file record."""
    content = _upload_chunks(file, service.blob_store.chunk_size)
    record = await service.store_file(file.filename, file.content_type, file.size, content)
    return _to_response(request, record)


@router.get("", response_model=list[FileResponse])
async def list_files(
    request: Request,
    service: FileService = Depends(get_file_service),
):
    """List all stored files."""
    return [_to_response(request, r) for r in await service.list_files()]


@router.get("/{file_id}", response_model=FileResponse, responses=NOT_FOUND)
async def get_file_metadata(
    file_id: int,
    request: Request,
    service: FileService = Depends(get_file_service),
):
    """Get file metadata by ID."""
    return _to_response(request, await service.get_file(file_id))


@router.get("/download/{file_id}", responses=NOT_FOUND)
async def download_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Download a file as an attachment."""
    record, reader = await service.open_for_download(file_id)
    return _stream(
        reader,
        "application/octet-stream",
        {"Content-Disposition": _content_disposition("attachment", record.original_name)},
    )


@router.get("/view/{file_id}", responses=NOT_FOUND)
async def view_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Serve a file inline so the browser can preview it."""
    record, reader, content_type = await service.open_for_view(file_id)
    return _stream(
        reader,
        content_type,
        {
            "Content-Disposition": _content_disposition("inline", record.original_name),
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Expose-Headers": "Content-Disposition",
        },
    )


@router.delete("/{file_id}", status_code=204, responses=NOT_FOUND)
async def delete_file(
    file_id: int,
    service: FileService = Depends(get_file_service),
):
    """Delete a file and its record."""
    await service.delete_file(file_id)
    return Response(status_code=204)
