"""
Game Posts API Endpoints.

Recruitment posts for game meetups: the post itself, its roster (members,
guests and the leader), its waiting list and its comments.

Capacity rules:
- Joining a FULL post answers 409 with ``X-Requires-Waiting: true``; the
  client then offers the waiting list.
- A slot freed while recruiting goes to the oldest WAITING entry.
- A slot freed while the game runs invites every WAITING entry; the first
  to accept takes it.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Query, status

from gclub.core.models.io.comments import CommentCreate, CommentRead, CommentUpdate
from gclub.core.models.io.common import MessageResponse
from gclub.core.models.io.game_posts import (
    GamePostCreate,
    GamePostDetail,
    GamePostListResponse,
    GamePostStatusRead,
    GamePostUpdate,
    GuestCreate,
    LeaveEarlyRequest,
    TransferLeaderRequest,
    WaitingDecision,
    WaitingJoinRequest,
    WaitingRead,
)
from gclub.server.services.comments import CommentParent
from gclub.server.services.deps import (
    CommentServiceDep,
    GameMateServiceDep,
    OptionalUserDep,
    ProfileUserDep,
)

router = APIRouter()


# =====================================================================
# Posts
# =====================================================================


@router.get(
    "",
    response_model=GamePostListResponse,
    summary="List Game Posts",
    description="Page through game posts. Deleted posts are never listed.",
    response_description="Paginated post summaries with participant and waiting counts.",
    responses={400: {"description": "Malformed filter"}},
)
async def list_game_posts(
    service: GameMateServiceDep,
    game_id: Optional[str] = Query(None, description="Game id, or `all`"),
    status_filter: Optional[str] = Query(None, alias="status", description="`recruiting` or a concrete status"),
    search: Optional[str] = Query(None, description="Case-insensitive title match"),
    sort: str = Query("latest", pattern="^(latest|start_time)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
) -> GamePostListResponse:
    """
    List game posts.

    - **game_id**: Restrict to one game; `all` means no filter.
    - **status**: `recruiting` matches OPEN and FULL.
    - **sort**: `latest` (newest first) or `start_time` (soonest first).
    """
    return await service.list_posts(
        game_id=game_id, status=status_filter, search=search, sort=sort, page=page, limit=limit
    )


@router.post(
    "",
    response_model=GamePostDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create Game Post",
    description="Open a recruitment post. The author joins as leader and named guests take slots immediately.",
    response_description="The created post with its roster.",
    responses={
        201: {"description": "Game post created"},
        400: {"description": "Invalid fields or too many guests for the cap"},
        403: {"description": "Profile registration required"},
    },
)
async def create_game_post(
    data: GamePostCreate, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostDetail:
    """
    Create a game post.

    - **title**: 1 to 100 characters.
    - **content**: Required.
    - **game_id** / **custom_game_name**: A catalogue game or a free-text name.
    - **max_participants**: Cap including the leader.
    - **start_time**: Must be in the future.
    - **guests**: Optional guest names.
    """
    return await service.create_post(user, data)


@router.get(
    "/{post_id}",
    response_model=GamePostDetail,
    summary="Get Game Post",
    description="Post with roster and waiting list. Authenticated callers also get their own participation and waiting entry.",
    response_description="The game post detail.",
    responses={404: {"description": "Game post not found or deleted"}},
)
async def get_game_post(post_id: int, viewer: OptionalUserDep, service: GameMateServiceDep) -> GamePostDetail:
    return await service.get_detail(post_id, viewer)


@router.post(
    "/{post_id}/view",
    summary="Count View",
    response_description="The new view count.",
    responses={404: {"description": "Game post not found or deleted"}},
)
async def view_game_post(post_id: int, service: GameMateServiceDep):
    return {"view_count": await service.record_view(post_id)}


@router.patch(
    "/{post_id}",
    response_model=GamePostDetail,
    summary="Update Game Post",
    description="Leader only. Changing the start time notifies every participant.",
    response_description="The updated post.",
    responses={
        400: {"description": "Invalid fields, or a cap below the current roster"},
        403: {"description": "Only the leader can edit"},
        404: {"description": "Game post not found"},
    },
)
async def update_game_post(
    post_id: int, data: GamePostUpdate, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostDetail:
    return await service.update_post(post_id, user, data)


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    summary="Delete Game Post",
    description="Leader or admin. The post is soft deleted and participants get GAME_CANCELLED.",
    response_description="Confirmation message.",
    responses={
        403: {"description": "Only the leader or an admin can delete"},
        404: {"description": "Game post not found"},
    },
)
async def delete_game_post(post_id: int, user: ProfileUserDep, service: GameMateServiceDep) -> MessageResponse:
    await service.delete_post(post_id, user)
    return MessageResponse(message="Game post deleted")


@router.post(
    "/{post_id}/close",
    response_model=GamePostStatusRead,
    summary="Close Recruitment",
    description="Leader only. An OPEN or FULL post becomes EXPIRED and its waiting list is cancelled.",
    response_description="The new status.",
    responses={400: {"description": "Post is not recruiting"}, 403: {"description": "Only the leader can close"}},
)
async def close_game_post(post_id: int, user: ProfileUserDep, service: GameMateServiceDep) -> GamePostStatusRead:
    return await service.close_post(post_id, user)


@router.post(
    "/{post_id}/toggle-status",
    response_model=GamePostStatusRead,
    summary="Toggle Completion",
    description="Leader only. OPEN/FULL becomes COMPLETED; COMPLETED reopens as OPEN or FULL by capacity.",
    response_description="The new status.",
    responses={400: {"description": "Status cannot be toggled"}, 403: {"description": "Only the leader can toggle"}},
)
async def toggle_game_post_status(
    post_id: int, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostStatusRead:
    return await service.toggle_status(post_id, user)


# =====================================================================
# Roster
# =====================================================================


@router.post(
    "/{post_id}/participate",
    response_model=GamePostDetail,
    summary="Participate",
    description="Join a recruiting post. A FULL post answers 409 with `X-Requires-Waiting: true`.",
    response_description="The post with the updated roster.",
    responses={
        400: {"description": "Leader, already participating, or post not recruiting"},
        404: {"description": "Game post not found"},
        409: {"description": "No free slot; join the waiting list instead"},
    },
)
async def participate(post_id: int, user: ProfileUserDep, service: GameMateServiceDep) -> GamePostDetail:
    return await service.participate(post_id, user)


@router.delete(
    "/{post_id}/participate",
    response_model=GamePostDetail,
    summary="Cancel Participation",
    description="Leave a recruiting post. A leader hands over to the earliest-joined member; the freed slot goes to the waiting list.",
    response_description="The post with the updated roster.",
    responses={
        400: {"description": "Post not recruiting, or a leader without a successor"},
        404: {"description": "Not participating"},
    },
)
async def cancel_participation(post_id: int, user: ProfileUserDep, service: GameMateServiceDep) -> GamePostDetail:
    return await service.cancel_participation(post_id, user)


@router.post(
    "/{post_id}/transfer-leader",
    response_model=GamePostDetail,
    summary="Transfer Leadership",
    response_description="The post with the new leader.",
    responses={
        400: {"description": "Target is not an active member"},
        403: {"description": "Only the leader can transfer"},
    },
)
async def transfer_leader(
    post_id: int, data: TransferLeaderRequest, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostDetail:
    return await service.transfer_leader(post_id, user, data.participant_id)


@router.post(
    "/{post_id}/guests",
    response_model=GamePostDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Add Guest",
    description="Leader only. A guest takes a slot like any member.",
    response_description="The post with the updated roster.",
    responses={
        400: {"description": "Invalid name or post closed"},
        403: {"description": "Only the leader can add guests"},
        409: {"description": "No free slot"},
    },
)
async def add_guest(
    post_id: int, data: GuestCreate, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostDetail:
    return await service.add_guest(post_id, user, data.name)


@router.delete(
    "/{post_id}/participants/{participant_id}",
    response_model=GamePostDetail,
    summary="Remove Participant",
    description="Leader only. The freed slot goes to the waiting list.",
    response_description="The post with the updated roster.",
    responses={
        400: {"description": "The leader cannot be removed"},
        403: {"description": "Only the leader can remove participants"},
        404: {"description": "Participant not found"},
    },
)
async def remove_participant(
    post_id: int, participant_id: int, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostDetail:
    return await service.remove_participant(post_id, user, participant_id)


@router.post(
    "/{post_id}/leave-early",
    response_model=GamePostDetail,
    summary="Leave Early",
    description="Leave a running game, or as leader remove someone from it. Every WAITING entry is invited to the freed slot.",
    response_description="The post with the updated roster.",
    responses={
        400: {"description": "Game is not in progress"},
        403: {"description": "Only the leader can remove others"},
        404: {"description": "Participant not found"},
    },
)
async def leave_early(
    post_id: int,
    user: ProfileUserDep,
    service: GameMateServiceDep,
    data: Optional[LeaveEarlyRequest] = Body(None),
) -> GamePostDetail:
    return await service.leave_early(post_id, user, data.participant_id if data else None)


# =====================================================================
# Waiting list
# =====================================================================


@router.post(
    "/{post_id}/waiting",
    response_model=WaitingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Join Waiting List",
    description="Queue behind a post. A future `available_time` queues as TIME_WAITING until then.",
    response_description="The waiting entry.",
    responses={
        400: {"description": "Leader, participant, already waiting, closed post, or a free slot to take directly"},
        404: {"description": "Game post not found"},
    },
)
async def join_waiting_list(
    post_id: int,
    user: ProfileUserDep,
    service: GameMateServiceDep,
    data: Optional[WaitingJoinRequest] = Body(None),
) -> WaitingRead:
    return await service.join_waiting_list(post_id, user, data.available_time if data else None)


@router.delete(
    "/{post_id}/waiting",
    response_model=WaitingRead,
    summary="Leave Waiting List",
    response_description="The cancelled waiting entry.",
    responses={404: {"description": "No active waiting entry"}},
)
async def cancel_waiting(post_id: int, user: ProfileUserDep, service: GameMateServiceDep) -> WaitingRead:
    return await service.cancel_waiting(post_id, user)


@router.post(
    "/{post_id}/waiting/{waiting_id}/accept",
    response_model=GamePostDetail,
    summary="Accept Invitation",
    description="Take the slot offered by an invitation while the game is in progress.",
    response_description="The post with the updated roster.",
    responses={
        400: {"description": "Entry is not INVITED or game is not in progress"},
        403: {"description": "Not your waiting entry"},
        409: {"description": "The slot was already taken"},
    },
)
async def accept_invitation(
    post_id: int, waiting_id: int, user: ProfileUserDep, service: GameMateServiceDep
) -> GamePostDetail:
    return await service.accept_invitation(post_id, waiting_id, user)


@router.delete(
    "/{post_id}/waiting/{waiting_id}",
    response_model=WaitingRead,
    summary="Cancel Waiting Entry",
    response_description="The cancelled waiting entry.",
    responses={
        400: {"description": "Entry is not active"},
        403: {"description": "Not your waiting entry"},
    },
)
async def cancel_waiting_entry(
    post_id: int, waiting_id: int, user: ProfileUserDep, service: GameMateServiceDep
) -> WaitingRead:
    return await service.cancel_waiting_entry(post_id, waiting_id, user)


@router.patch(
    "/{post_id}/waiting/{waiting_id}",
    summary="Decide Waiting Entry (removed)",
    description="Manual accept/reject by the leader was replaced by automatic promotion.",
    responses={410: {"description": "Always"}},
)
async def decide_waiting_entry(
    post_id: int,
    waiting_id: int,
    user: ProfileUserDep,
    service: GameMateServiceDep,
    data: Optional[WaitingDecision] = Body(None),
):
    await service.decide_waiting_entry(post_id, waiting_id)


# =====================================================================
# Comments
# =====================================================================


@router.get(
    "/{post_id}/comments",
    response_model=List[CommentRead],
    summary="List Comments",
    response_description="Comments, oldest first.",
    responses={404: {"description": "Game post not found"}},
)
async def list_comments(post_id: int, viewer: OptionalUserDep, service: CommentServiceDep) -> List[CommentRead]:
    return await service.list_comments(CommentParent.GAME_POST, post_id, viewer)


@router.post(
    "/{post_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add Comment",
    responses={400: {"description": "Content must be 1 to 500 characters"}},
)
async def create_comment(
    post_id: int, data: CommentCreate, user: ProfileUserDep, service: CommentServiceDep
) -> CommentRead:
    return await service.create_comment(CommentParent.GAME_POST, post_id, user, data.content)


@router.patch(
    "/{post_id}/comments/{comment_id}",
    response_model=CommentRead,
    summary="Edit Comment",
    responses={403: {"description": "Only the author can edit"}, 404: {"description": "Comment not found"}},
)
async def update_comment(
    post_id: int, comment_id: int, data: CommentUpdate, user: ProfileUserDep, service: CommentServiceDep
) -> CommentRead:
    return await service.update_comment(CommentParent.GAME_POST, post_id, comment_id, user, data.content)


@router.delete(
    "/{post_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete Comment",
    responses={403: {"description": "Only the author or an admin can delete"}, 404: {"description": "Comment not found"}},
)
async def delete_comment(
    post_id: int, comment_id: int, user: ProfileUserDep, service: CommentServiceDep
) -> MessageResponse:
    await service.delete_comment(CommentParent.GAME_POST, post_id, comment_id, user)
    return MessageResponse(message="Comment deleted")
