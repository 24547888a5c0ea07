"""
Notices API Endpoints.

Admin-authored announcements. Members (any role above NONE) read published
notices; admins also see drafts and manage them. Publishing a notice for the
first time sends a NOTICE notification to everyone.
"""

from typing import List, Optional

from fastapi import APIRouter, Header, Query, status

from gclub.core.models.io.comments import CommentCreate, CommentRead, CommentUpdate
from gclub.core.models.io.common import MessageResponse
from gclub.core.models.io.notices import (
    NoticeCreate,
    NoticeIdCheck,
    NoticeIdCheckRequest,
    NoticeListResponse,
    NoticeRead,
    NoticeUpdate,
)
from gclub.server.services.comments import CommentParent
from gclub.server.services.deps import (
    AdminUserDep,
    CommentServiceDep,
    CurrentUserDep,
    NoticeServiceDep,
    OptionalUserDep,
    ProfileUserDep,
)

router = APIRouter()


@router.get(
    "",
    response_model=NoticeListResponse,
    summary="List Notices",
    description="Pinned first, then by priority and publication time. Callers without a member role get an empty page.",
    response_description="Paginated notices.",
    responses={403: {"description": "Only admins may include unpublished notices"}},
)
async def list_notices(
    user: OptionalUserDep,
    service: NoticeServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    include_unpublished: bool = Query(False),
) -> NoticeListResponse:
    return await service.list_notices(user, page=page, limit=limit, include_unpublished=include_unpublished)


@router.post(
    "/validate-id",
    response_model=NoticeIdCheck,
    summary="Validate Notice Id",
    description="Check a client-generated notice id before uploading content under it.",
    response_description="Whether the id is well formed and already taken.",
    responses={400: {"description": "Not a UUID v4"}, 403: {"description": "Admin role required"}},
)
async def validate_notice_id(data: NoticeIdCheckRequest, user: AdminUserDep, service: NoticeServiceDep) -> NoticeIdCheck:
    return await service.check_id(data.notice_id)


@router.post(
    "",
    response_model=NoticeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Notice",
    description="Admin only. The `X-Temp-Notice-Id` header may carry a client-generated UUID v4 that becomes the id.",
    response_description="The created notice.",
    responses={
        400: {"description": "Invalid title, content or id"},
        403: {"description": "Admin role required"},
        409: {"description": "Notice id already exists"},
    },
)
async def create_notice(
    data: NoticeCreate,
    user: AdminUserDep,
    service: NoticeServiceDep,
    x_temp_notice_id: Optional[str] = Header(None),
) -> NoticeRead:
    """
    Create a notice.

    - **title**: Trimmed, 1 to 200 characters.
    - **content**: Rich-text document with at least one non-empty paragraph.
    - **is_published**: Publishing sets `published_at` and notifies everyone.
    - **is_pinned** / **priority**: Ordering controls.
    - **allow_comments**: Whether members can comment.
    """
    return await service.create_notice(user, data, x_temp_notice_id)


@router.get(
    "/{notice_id}",
    response_model=NoticeRead,
    summary="Get Notice",
    response_description="The notice.",
    responses={
        403: {"description": "Members only"},
        404: {"description": "Notice not found, deleted or unpublished"},
    },
)
async def get_notice(notice_id: str, user: CurrentUserDep, service: NoticeServiceDep) -> NoticeRead:
    return await service.get_notice(notice_id, user)


@router.post(
    "/{notice_id}/view",
    summary="Count View",
    response_description="The new view count.",
    responses={404: {"description": "Notice not found"}},
)
async def view_notice(notice_id: str, user: CurrentUserDep, service: NoticeServiceDep):
    return {"view_count": await service.record_view(notice_id, user)}


@router.patch(
    "/{notice_id}",
    response_model=NoticeRead,
    summary="Update Notice",
    description="Admin only. The first publication sets `published_at` and notifies everyone.",
    response_description="The updated notice.",
    responses={
        400: {"description": "Invalid title or content"},
        403: {"description": "Admin role required"},
        404: {"description": "Notice not found"},
    },
)
async def update_notice(
    notice_id: str, data: NoticeUpdate, user: AdminUserDep, service: NoticeServiceDep
) -> NoticeRead:
    return await service.update_notice(notice_id, user, data)


@router.delete(
    "/{notice_id}",
    response_model=MessageResponse,
    summary="Delete Notice",
    description="Admin only. Soft delete.",
    responses={403: {"description": "Admin role required"}, 404: {"description": "Notice not found"}},
)
async def delete_notice(notice_id: str, user: AdminUserDep, service: NoticeServiceDep) -> MessageResponse:
    await service.delete_notice(notice_id, user)
    return MessageResponse(message="Notice deleted")


@router.get(
    "/{notice_id}/comments",
    response_model=List[CommentRead],
    summary="List Notice Comments",
    responses={403: {"description": "Members only"}, 404: {"description": "Notice not found"}},
)
async def list_comments(notice_id: str, user: CurrentUserDep, service: CommentServiceDep) -> List[CommentRead]:
    return await service.list_comments(CommentParent.NOTICE, notice_id, user)


@router.post(
    "/{notice_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Notice Comment",
    responses={
        400: {"description": "Content must be 1 to 500 characters"},
        403: {"description": "Members only, or comments disabled"},
    },
)
async def create_comment(
    notice_id: str, data: CommentCreate, user: ProfileUserDep, service: CommentServiceDep
) -> CommentRead:
    return await service.create_comment(CommentParent.NOTICE, notice_id, user, data.content)


@router.patch(
    "/{notice_id}/comments/{comment_id}",
    response_model=CommentRead,
    summary="Edit Notice Comment",
    responses={403: {"description": "Only the author can edit"}, 404: {"description": "Comment not found"}},
)
async def update_comment(
    notice_id: str, comment_id: int, data: CommentUpdate, user: ProfileUserDep, service: CommentServiceDep
) -> CommentRead:
    return await service.update_comment(CommentParent.NOTICE, notice_id, comment_id, user, data.content)


@router.delete(
    "/{notice_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete Notice Comment",
    responses={403: {"description": "Only the author or an admin can delete"}, 404: {"description": "Comment not found"}},
)
async def delete_comment(
    notice_id: str, comment_id: int, user: ProfileUserDep, service: CommentServiceDep
) -> MessageResponse:
    await service.delete_comment(CommentParent.NOTICE, notice_id, comment_id, user)
    return MessageResponse(message="Notice comment deleted")
