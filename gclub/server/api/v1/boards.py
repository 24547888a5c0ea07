"""
Channels and Board Posts API Endpoints.

Every channel owns one board; board posts are written by members holding
POST_CREATE and moderated by POST_MANAGE_ALL holders.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status

from gclub.core.models.domain import PermissionType
from gclub.core.models.io.boards import (
    BoardPostListResponse,
    ChannelCreate,
    ChannelOrderUpdate,
    ChannelRead,
    ChannelStatusRead,
    ChannelStatusUpdate,
    PostCreate,
    PostRead,
    PostUpdate,
)
from gclub.core.models.io.comments import CommentCreate, CommentRead, CommentUpdate
from gclub.core.models.io.common import MessageResponse
from gclub.server.services.auth import CurrentUser
from gclub.server.services.comments import CommentParent
from gclub.server.services.deps import (
    AdminUserDep,
    BoardServiceDep,
    CommentServiceDep,
    CurrentUserDep,
    OptionalUserDep,
    ProfileUserDep,
    require_permission,
)

router = APIRouter()


@router.get(
    "/channels",
    response_model=List[ChannelRead],
    summary="List Channels",
    description="Active channels in display order.",
    response_description="A list of channels.",
)
async def list_channels(service: BoardServiceDep) -> List[ChannelRead]:
    return await service.list_channels()


@router.post(
    "/channels",
    response_model=ChannelRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Channel",
    description="Admin only. Creates the channel together with its board.",
    response_description="The created channel.",
    responses={
        400: {"description": "Missing name or slug"},
        403: {"description": "Admin role required"},
        409: {"description": "Slug already exists"},
    },
)
async def create_channel(data: ChannelCreate, user: AdminUserDep, service: BoardServiceDep) -> ChannelRead:
    """
    Create a channel.

    - **name**: Channel name.
    - **slug**: Unique URL slug, stored lower-case.
    - **board_name**: Name of the channel's board; defaults to the channel name.
    """
    return await service.create_channel(data)


@router.put(
    "/channels/order",
    response_model=List[ChannelRead],
    summary="Reorder Channels",
    description="Admin only. Set the display order of several channels at once.",
    response_description="Every channel in its new order.",
    responses={
        403: {"description": "Admin role required"},
        404: {"description": "Unknown channel id"},
    },
)
async def reorder_channels(data: ChannelOrderUpdate, user: AdminUserDep, service: BoardServiceDep) -> List[ChannelRead]:
    """
    Reorder channels.

    - **channels**: List of `{id, order}` pairs; channels left out keep their order.
    """
    return await service.reorder_channels(data)


@router.put(
    "/channels/{slug}/status",
    response_model=ChannelStatusRead,
    summary="Set Channel Status",
    description="Admin only. `type=channel` hides or shows the channel; `type=board` closes or opens its board.",
    response_description="The channel with its and its board's active flags.",
    responses={
        403: {"description": "Admin role required"},
        404: {"description": "Channel or board not found"},
    },
)
async def set_channel_status(
    slug: str, data: ChannelStatusUpdate, user: AdminUserDep, service: BoardServiceDep
) -> ChannelStatusRead:
    return await service.update_channel_status(slug, data)


@router.get(
    "/channels/{slug}/board/posts",
    response_model=BoardPostListResponse,
    summary="List Board Posts",
    description="Published posts of the channel's board, newest first.",
    response_description="Board info with paginated posts.",
    responses={404: {"description": "Channel or board not found"}},
)
async def list_board_posts(
    slug: str,
    service: BoardServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
) -> BoardPostListResponse:
    return await service.list_posts(slug, page, limit)


@router.post(
    "/channels/{slug}/board/posts",
    response_model=PostRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Board Post",
    response_description="The created post.",
    responses={
        400: {"description": "Title must be 1 to 200 characters and content is required"},
        403: {"description": "POST_CREATE permission required"},
        404: {"description": "Channel or board not found"},
    },
)
async def create_board_post(
    slug: str,
    data: PostCreate,
    service: BoardServiceDep,
    user: CurrentUser = Depends(require_permission(PermissionType.POST_CREATE)),
) -> PostRead:
    return await service.create_post(slug, user, data)


@router.get(
    "/posts/{post_id}",
    response_model=PostRead,
    summary="Get Board Post",
    description="Return a post and count the view. Unpublished posts are visible to their author only.",
    responses={404: {"description": "Post not found"}},
)
async def get_board_post(post_id: int, viewer: OptionalUserDep, service: BoardServiceDep) -> PostRead:
    return await service.view_post(post_id, viewer)


@router.patch(
    "/posts/{post_id}",
    response_model=PostRead,
    summary="Update Board Post",
    responses={
        400: {"description": "Invalid title or content"},
        403: {"description": "Only the author or a POST_MANAGE_ALL holder can edit"},
        404: {"description": "Post not found"},
    },
)
async def update_board_post(
    post_id: int, data: PostUpdate, user: CurrentUserDep, service: BoardServiceDep
) -> PostRead:
    return await service.update_post(post_id, user, data)


@router.delete(
    "/posts/{post_id}",
    response_model=MessageResponse,
    summary="Delete Board Post",
    description="The author, or a holder of both POST_DELETE and POST_MANAGE_ALL. Comments go with the post.",
    responses={403: {"description": "Not allowed to delete"}, 404: {"description": "Post not found"}},
)
async def delete_board_post(post_id: int, user: CurrentUserDep, service: BoardServiceDep) -> MessageResponse:
    await service.delete_post(post_id, user)
    return MessageResponse(message="Post deleted")


@router.get(
    "/posts/{post_id}/comments",
    response_model=List[CommentRead],
    summary="List Board Post Comments",
    responses={404: {"description": "Post not found"}},
)
async def list_comments(post_id: int, viewer: OptionalUserDep, service: CommentServiceDep) -> List[CommentRead]:
    return await service.list_comments(CommentParent.POST, post_id, viewer)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Board Post Comment",
    responses={400: {"description": "Content must be 1 to 500 characters"}},
)
async def create_comment(
    post_id: int, data: CommentCreate, user: ProfileUserDep, service: CommentServiceDep
) -> CommentRead:
    return await service.create_comment(CommentParent.POST, post_id, user, data.content)


@router.patch(
    "/posts/{post_id}/comments/{comment_id}",
    response_model=CommentRead,
    summary="Edit Board Post Comment",
    responses={403: {"description": "Only the author can edit"}, 404: {"description": "Comment not found"}},
)
async def update_comment(
    post_id: int, comment_id: int, data: CommentUpdate, user: ProfileUserDep, service: CommentServiceDep
) -> CommentRead:
    return await service.update_comment(CommentParent.POST, post_id, comment_id, user, data.content)


@router.delete(
    "/posts/{post_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete Board Post Comment",
    responses={403: {"description": "Only the author or an admin can delete"}, 404: {"description": "Comment not found"}},
)
async def delete_comment(
    post_id: int, comment_id: int, user: ProfileUserDep, service: CommentServiceDep
) -> MessageResponse:
    await service.delete_comment(CommentParent.POST, post_id, comment_id, user)
    return MessageResponse(message="Comment deleted")
