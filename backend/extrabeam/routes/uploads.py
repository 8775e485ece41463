"""
ExtraBeam Backend - Upload & File Routes
========================================

What:  Local object storage: public URLs, signed upload URLs, the signed
       upload itself and file serving.

Upload Flow:
    1. POST /api/uploads/put-signed-url {bucket, path}  → {url, token}
    2. PUT  {url} with the raw file as body             → {path, publicUrl}
    3. GET  /api/files/{bucket}/{path}                  → the file

Security:
    - Issuing URLs requires a logged-in user. The upload token is a
      short-lived JWT naming bucket and path; the PUT itself needs no other
      credential.
    - Paths are resolved inside STORAGE_ROOT (400 otherwise).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import FileResponse

from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import AuthUser
from extrabeam.schemas.common import ErrorResponse
from extrabeam.schemas.system import (
    PublicUrlResponse,
    SignedUploadUrlResponse,
    UploadedFileResponse,
    UploadTarget,
)
from extrabeam.services.file_service import file_service

router = APIRouter(prefix="/api", tags=["Uploads"])


@router.post(
    "/uploads/public-url",
    response_model=PublicUrlResponse,
    responses={
        400: {"description": "Invalid path", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="Public URL of a stored object",
)
async def public_url(
    body: UploadTarget, user: AuthUser = Depends(get_current_user)
) -> PublicUrlResponse:
    return PublicUrlResponse(public_url=file_service.public_url(body.bucket, body.path))


@router.post(
    "/uploads/put-signed-url",
    response_model=SignedUploadUrlResponse,
    responses={
        400: {"description": "Invalid path or extension", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="Issue a signed upload URL",
)
async def put_signed_url(
    body: UploadTarget, user: AuthUser = Depends(get_current_user)
) -> SignedUploadUrlResponse:
    return SignedUploadUrlResponse(**file_service.create_signed_upload(body.bucket, body.path))


@router.put(
    "/uploads/signed/{token}",
    response_model=UploadedFileResponse,
    responses={
        400: {"description": "Invalid extension, size or path", "model": ErrorResponse},
        401: {"description": "Invalid or expired upload token", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload a file with a signed token",
    description="The request body is the raw file content.",
)
async def signed_upload(
    token: str,
    request: Request,
    content_length: Optional[int] = Header(default=None),
) -> UploadedFileResponse:
    content = await request.body()
    stored = await file_service.store_signed_upload(token, content, content_length)
    return UploadedFileResponse(path=stored["path"], public_url=stored["publicUrl"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve a stored file",
    responses={
        200: {"description": "File content"},
        400: {"description": "Path outside storage", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve_existing(file_path)
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
