"""
Game-mate Service.

Recruitment posts, their rosters and waiting lists. Every capacity-changing
operation locks the post row, applies its writes and commits once; the
notifications it triggers are sent afterwards in a second transaction so a
delivery failure never undoes the roster change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from gclub.core.database.base import to_naive_utc, utc_now
from gclub.core.database.entities.game_posts import GameParticipant, GamePost, WaitingParticipant
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ConflictError, ForbiddenError, GoneError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import (
    ACTIVE_WAITING_STATUSES,
    CLOSED_STATUSES,
    RECRUITING_STATUSES,
    GamePostStatus,
    NotificationEvent,
    NotificationType,
    ParticipantStatus,
    ParticipantType,
    WaitingStatus,
)
from gclub.core.models.io.common import Pagination
from gclub.core.models.io.game_posts import (
    GamePostCreate,
    GamePostDetail,
    GamePostListResponse,
    GamePostStatusRead,
    GamePostSummary,
    GamePostUpdate,
    ParticipantRead,
    WaitingRead,
)
from gclub.core.monitoring import log_domain_event
from gclub.server.core.config import GameMateConfig, settings
from gclub.server.services.auth import CurrentUser
from gclub.server.services.notifications import NotificationService

logger = get_logger(__name__)

REQUIRES_WAITING_HEADERS = {"X-Requires-Waiting": "true"}

Send = Callable[[], Awaitable[int]]


@dataclass
class Promotion:
    waiting_id: int
    user_id: str


@dataclass
class RosterChange:
    """Side effects of a roster write that still need notifying."""

    promoted: List[Promotion] = field(default_factory=list)
    became_full: bool = False


def _recruiting(post: GamePost) -> bool:
    return post.status in {status.value for status in RECRUITING_STATUSES}


def _closed(post: GamePost) -> bool:
    return post.status in {status.value for status in CLOSED_STATUSES}


class GameMateService:
    """Game post lifecycle operations."""

    def __init__(
        self,
        repos: SqlRepoBundle,
        notifications: NotificationService,
        config: Optional[GameMateConfig] = None,
    ) -> None:
        self.repos = repos
        self.notifications = notifications
        self.config = config or settings.game_mate

    # =====================================================================
    # Helpers
    # =====================================================================

    async def _get_post(self, post_id: int, for_update: bool = False) -> GamePost:
        post = await self.repos.game_posts.get_live(post_id, for_update=for_update)
        if post is None:
            raise NotFoundError("Game post not found")
        return post

    async def _require_leader(self, post: GamePost, user: CurrentUser) -> GameParticipant:
        leader = await self.repos.participants.get_leader(post.id)
        if leader is None or leader.user_id != user.user_id:
            raise ForbiddenError("Only the game leader can do this")
        return leader

    def _apply_capacity_status(self, post: GamePost, active_count: int) -> bool:
        """Set OPEN/FULL from capacity while recruiting. Returns True when the post just became FULL."""
        if not _recruiting(post):
            return False
        was_full = post.status == GamePostStatus.FULL.value
        post.status = (GamePostStatus.FULL if active_count >= post.max_participants else GamePostStatus.OPEN).value
        return post.status == GamePostStatus.FULL.value and not was_full

    async def _join_member(self, post: GamePost, user_id: str, now: datetime) -> GameParticipant:
        """Activate ``user_id`` on the roster, reusing a previous row."""
        participant = await self.repos.participants.get_for_user(post.id, user_id)
        if participant is None:
            return await self.repos.participants.create(
                GameParticipant(
                    game_post_id=post.id,
                    user_id=user_id,
                    participant_type=ParticipantType.MEMBER.value,
                    status=ParticipantStatus.ACTIVE.value,
                    joined_at=now,
                )
            )
        participant.status = ParticipantStatus.ACTIVE.value
        participant.is_leader = False
        participant.joined_at = now
        participant.left_at = None
        return await self.repos.participants.update(participant)

    async def promote_waiters(self, post: GamePost, now: datetime) -> RosterChange:
        """Fill free slots from the WAITING queue, oldest request first, and refresh the status."""
        change = RosterChange()
        active = await self.repos.participants.active_count(post.id)
        if _recruiting(post):
            while active < post.max_participants:
                entry = await self.repos.waiting.first_waiting(post.id)
                if entry is None:
                    break
                await self._join_member(post, entry.user_id, now)
                await self.repos.waiting.delete(entry.id)
                change.promoted.append(Promotion(waiting_id=entry.id, user_id=entry.user_id))
                active += 1
        change.became_full = self._apply_capacity_status(post, active)
        await self.repos.game_posts.update(post)
        if change.promoted:
            logger.info(f"Promoted {len(change.promoted)} waiting users on game post {post.id}")
        return change

    async def _transfer_leadership(self, post: GamePost, leader: GameParticipant) -> GameParticipant:
        successor = await self.repos.participants.earliest_active_member(post.id, exclude_user_id=leader.user_id)
        if successor is None:
            raise BadRequestError("The leader cannot leave while no other member is participating")
        leader.is_leader = False
        successor.is_leader = True
        await self.repos.participants.update(leader)
        await self.repos.participants.update(successor)
        logger.info(f"Leadership of game post {post.id} moved to {successor.user_id}")
        return successor

    async def _cancel_active_waiters(self, post: GamePost) -> List[str]:
        entries = await self.repos.waiting.list_for_post(post.id, ACTIVE_WAITING_STATUSES)
        for entry in entries:
            entry.status = WaitingStatus.CANCELED.value
            await self.repos.waiting.update(entry)
        return [entry.user_id for entry in entries]

    async def game_name_for(self, post: GamePost) -> Optional[str]:
        if post.game_id is None:
            return post.custom_game_name
        game = await self.repos.games.get_by_id(post.game_id)
        return game.name if game else post.custom_game_name

    async def _notify_safely(self, post_id: int, sends: Sequence[Send]) -> None:
        """Run notification sends in their own transaction; failures are logged only."""
        if not sends:
            return
        try:
            for send in sends:
                await send()
            await self.repos.session.commit()
        except Exception as exc:
            await self.repos.session.rollback()
            logger.warning(f"Notification delivery for game post {post_id} failed: {exc}")

    def _roster_sends(
        self,
        post: GamePost,
        event: NotificationEvent,
        *,
        leader_id: Optional[str],
        member_ids: Sequence[str],
        actor: Optional[CurrentUser],
        game_name: Optional[str],
    ) -> List[Send]:
        """Leader gets MY_GAME_POST_UPDATE, other members PARTICIPATING_GAME_UPDATE."""
        sender_id = actor.user_id if actor else None
        actor_name = actor.display_name if actor else None
        others = [uid for uid in member_ids if uid != leader_id]
        sends: List[Send] = []
        if leader_id:
            sends.append(
                lambda: self.notifications.send_game_event(
                    post,
                    NotificationType.MY_GAME_POST_UPDATE,
                    event,
                    [leader_id],
                    sender_id=sender_id,
                    actor_name=actor_name,
                    game_name=game_name,
                )
            )
        if others:
            sends.append(
                lambda: self.notifications.send_game_event(
                    post,
                    NotificationType.PARTICIPATING_GAME_UPDATE,
                    event,
                    others,
                    sender_id=sender_id,
                    actor_name=actor_name,
                    game_name=game_name,
                )
            )
        return sends

    def _waiting_sends(
        self, post: GamePost, event: NotificationEvent, user_ids: Sequence[str], game_name: Optional[str]
    ) -> List[Send]:
        if not user_ids:
            return []
        return [
            lambda: self.notifications.send_game_event(
                post, NotificationType.WAITING_LIST_UPDATE, event, list(user_ids), game_name=game_name
            )
        ]

    async def _change_sends(
        self,
        post: GamePost,
        change: RosterChange,
        game_name: Optional[str],
        event: Optional[NotificationEvent] = None,
        actor: Optional[CurrentUser] = None,
    ) -> List[Send]:
        """Sends for a roster event plus the promotions and GAME_FULL it caused."""
        leader = await self.repos.participants.get_leader(post.id)
        leader_id = leader.user_id if leader else None
        members = await self.repos.participants.active_member_user_ids(post.id)
        sends: List[Send] = []
        if event is not None:
            sends += self._roster_sends(
                post, event, leader_id=leader_id, member_ids=members, actor=actor, game_name=game_name
            )
        promoted = [promotion.user_id for promotion in change.promoted]
        sends += self._waiting_sends(post, NotificationEvent.PROMOTED, promoted, game_name)
        if change.became_full:
            sends += self._roster_sends(
                post, NotificationEvent.GAME_FULL, leader_id=leader_id, member_ids=members, actor=None, game_name=game_name
            )
        return sends

    async def notify_change(self, post: GamePost, change: RosterChange) -> None:
        """Send the promotions and GAME_FULL of a change made outside a request."""
        game_name = await self.game_name_for(post)
        await self._notify_safely(post.id, await self._change_sends(post, change, game_name))

    async def notify_invited(self, post: GamePost, user_ids: Sequence[str]) -> None:
        game_name = await self.game_name_for(post)
        await self._notify_safely(post.id, self._waiting_sends(post, NotificationEvent.INVITED, user_ids, game_name))

    # =====================================================================
    # Validation
    # =====================================================================

    def _validate_title(self, title: Optional[str]) -> str:
        title = (title or "").strip()
        if not 1 <= len(title) <= 100:
            raise BadRequestError("Title must be 1 to 100 characters")
        return title

    def _validate_capacity(self, max_participants: Optional[int]) -> int:
        low, high = self.config.min_participants, self.config.max_participants
        if max_participants is None or not low <= max_participants <= high:
            raise BadRequestError(f"max_participants must be between {low} and {high}")
        return max_participants

    def _validate_start_time(self, start_time: Optional[datetime], now: datetime) -> datetime:
        if start_time is None:
            raise BadRequestError("start_time is required")
        start = to_naive_utc(start_time)
        if start <= now:
            raise BadRequestError("start_time must be in the future")
        return start

    async def _validate_game(self, game_id: Optional[int], custom_game_name: Optional[str]) -> None:
        if game_id is not None:
            if await self.repos.games.get_by_id(game_id) is None:
                raise BadRequestError(f"Game {game_id} does not exist")
        elif not (custom_game_name or "").strip():
            raise BadRequestError("Either game_id or custom_game_name is required")

    @staticmethod
    def _validate_guest_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not 1 <= len(name) <= 50:
            raise BadRequestError("Guest name must be 1 to 50 characters")
        return name

    # =====================================================================
    # Read models
    # =====================================================================

    async def _names(self, user_ids: Sequence[Optional[str]]) -> Dict[str, str]:
        profiles = await self.repos.profiles.get_many_by_user_ids([uid for uid in user_ids if uid])
        return {uid: profile.name for uid, profile in profiles.items()}

    @staticmethod
    def _participant_read(participant: GameParticipant, names: Dict[str, str]) -> ParticipantRead:
        read = ParticipantRead.model_validate(participant)
        read.name = participant.guest_name if participant.user_id is None else names.get(participant.user_id)
        return read

    @staticmethod
    def _waiting_read(entry: WaitingParticipant, names: Dict[str, str]) -> WaitingRead:
        read = WaitingRead.model_validate(entry)
        read.name = names.get(entry.user_id)
        return read

    async def get_detail(self, post_id: int, viewer: Optional[CurrentUser] = None) -> GamePostDetail:
        """Post with roster, waiting list and the viewer's own entries."""
        post = await self._get_post(post_id)
        participants = await self.repos.participants.list_for_post(post.id)
        waiting = await self.repos.waiting.list_for_post(post.id)
        names = await self._names(
            [post.author_id] + [p.user_id for p in participants] + [w.user_id for w in waiting]
        )
        leader = next((p for p in participants if p.is_leader), None)
        roster = [self._participant_read(p, names) for p in participants]
        queue = [self._waiting_read(w, names) for w in waiting]

        my_participation = my_waiting = None
        if viewer is not None:
            mine = next((p for p in participants if p.user_id == viewer.user_id), None)
            my_participation = self._participant_read(mine, names) if mine else None
            entry = next((w for w in waiting if w.user_id == viewer.user_id), None)
            my_waiting = self._waiting_read(entry, names) if entry else None

        return GamePostDetail(
            id=post.id,
            title=post.title,
            content=post.content,
            game_id=post.game_id,
            game_name=await self.game_name_for(post),
            custom_game_name=post.custom_game_name,
            max_participants=post.max_participants,
            participant_count=sum(1 for p in participants if p.status == ParticipantStatus.ACTIVE.value),
            waiting_count=len(waiting),
            start_time=post.start_time,
            status=post.status,
            author_id=post.author_id,
            author_name=names.get(post.author_id),
            leader_id=leader.user_id if leader else None,
            view_count=post.view_count,
            created_at=post.created_at,
            updated_at=post.updated_at,
            participants=roster,
            waiting_list=queue,
            my_participation=my_participation,
            my_waiting=my_waiting,
        )

    async def list_posts(
        self,
        *,
        game_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "latest",
        page: int = 1,
        limit: int = 10,
    ) -> GamePostListResponse:
        """Page through posts.

        ``game_id`` of ``all`` means no game filter; ``status`` of ``recruiting``
        means OPEN or FULL.
        """
        game_filter: Optional[int] = None
        if game_id and game_id != "all":
            try:
                game_filter = int(game_id)
            except ValueError as exc:
                raise BadRequestError("game_id must be an integer or 'all'") from exc

        statuses: Optional[List[GamePostStatus]] = None
        if status == "recruiting":
            statuses = list(RECRUITING_STATUSES)
        elif status:
            try:
                statuses = [GamePostStatus(status.upper())]
            except ValueError as exc:
                raise BadRequestError(f"Unknown status '{status}'") from exc
        if sort not in ("latest", "start_time"):
            raise BadRequestError("sort must be 'latest' or 'start_time'")

        posts, total = await self.repos.game_posts.list_posts(
            game_id=game_filter, statuses=statuses, search=search, sort=sort, page=page, limit=limit
        )
        post_ids = [post.id for post in posts]
        active = await self.repos.participants.active_counts(post_ids)
        waiting = await self.repos.waiting.waiting_counts(post_ids)
        names = await self._names([post.author_id for post in posts])
        game_ids = list({post.game_id for post in posts if post.game_id is not None})
        games = {game.id: game.name for game in await self.repos.games.list_games(ids=game_ids)} if game_ids else {}

        items = [
            GamePostSummary(
                id=post.id,
                title=post.title,
                game_id=post.game_id,
                game_name=games.get(post.game_id) if post.game_id is not None else post.custom_game_name,
                max_participants=post.max_participants,
                participant_count=active.get(post.id, 0),
                waiting_count=waiting.get(post.id, 0),
                start_time=post.start_time,
                status=post.status,
                author_id=post.author_id,
                author_name=names.get(post.author_id),
                view_count=post.view_count,
                created_at=post.created_at,
            )
            for post in posts
        ]
        return GamePostListResponse(items=items, pagination=Pagination.build(page, limit, total))

    async def record_view(self, post_id: int) -> int:
        await self._get_post(post_id)
        count = await self.repos.game_posts.increment_views(post_id)
        await self.repos.session.commit()
        return count or 0

    async def _status_read(self, post: GamePost) -> GamePostStatusRead:
        return GamePostStatusRead(
            id=post.id,
            status=post.status,
            participant_count=await self.repos.participants.active_count(post.id),
            max_participants=post.max_participants,
        )

    # =====================================================================
    # Post management
    # =====================================================================

    async def create_post(self, user: CurrentUser, data: GamePostCreate) -> GamePostDetail:
        """Open a recruitment post with the author as leader.

        Raises:
            BadRequestError: On invalid fields or when guests exceed the cap
        """
        now = utc_now()
        title = self._validate_title(data.title)
        if not (data.content or "").strip():
            raise BadRequestError("Content is required")
        await self._validate_game(data.game_id, data.custom_game_name)
        max_participants = self._validate_capacity(data.max_participants)
        start_time = self._validate_start_time(data.start_time, now)
        guests = [self._validate_guest_name(name) for name in data.guests]
        if 1 + len(guests) > max_participants:
            raise BadRequestError("Participants exceed max_participants")

        post = await self.repos.game_posts.create(
            GamePost(
                title=title,
                content=data.content,
                game_id=data.game_id,
                custom_game_name=None if data.game_id is not None else data.custom_game_name.strip(),
                max_participants=max_participants,
                start_time=start_time,
                status=GamePostStatus.OPEN.value,
                author_id=user.user_id,
                created_at=now,
                updated_at=now,
            )
        )
        await self.repos.participants.create(
            GameParticipant(
                game_post_id=post.id,
                user_id=user.user_id,
                participant_type=ParticipantType.MEMBER.value,
                is_leader=True,
                joined_at=now,
            )
        )
        for name in guests:
            await self.repos.participants.create(
                GameParticipant(
                    game_post_id=post.id,
                    participant_type=ParticipantType.GUEST.value,
                    guest_name=name,
                    joined_at=now,
                )
            )
        self._apply_capacity_status(post, 1 + len(guests))
        await self.repos.game_posts.update(post)
        await self.repos.session.commit()
        log_domain_event("game_post.created", game_post_id=post.id, author_id=user.user_id)
        logger.info(f"Game post {post.id} created by {user.user_id}")

        detail = await self.get_detail(post.id, user)
        game_name = detail.game_name

        async def announce() -> int:
            recipients = await self.repos.profiles.list_user_ids()
            return await self.notifications.send_game_event(
                post,
                NotificationType.NEW_GAME_POST,
                None,
                recipients,
                sender_id=user.user_id,
                actor_name=user.display_name,
                game_name=game_name,
            )

        await self._notify_safely(post.id, [announce])
        return detail

    async def update_post(self, post_id: int, user: CurrentUser, data: GamePostUpdate) -> GamePostDetail:
        """Edit a post (leader only)."""
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        await self._require_leader(post, user)
        fields = data.model_fields_set

        if "title" in fields:
            post.title = self._validate_title(data.title)
        if "content" in fields:
            if not (data.content or "").strip():
                raise BadRequestError("Content is required")
            post.content = data.content
        if "game_id" in fields or "custom_game_name" in fields:
            game_id = data.game_id if "game_id" in fields else post.game_id
            custom = data.custom_game_name if "custom_game_name" in fields else post.custom_game_name
            await self._validate_game(game_id, custom)
            post.game_id = game_id
            post.custom_game_name = None if game_id is not None else custom.strip()
        if "max_participants" in fields:
            max_participants = self._validate_capacity(data.max_participants)
            active = await self.repos.participants.active_count(post.id)
            if max_participants < active:
                raise BadRequestError(f"max_participants cannot be below the current {active} participants")
            post.max_participants = max_participants

        time_changed = False
        if "start_time" in fields:
            start_time = to_naive_utc(data.start_time) if data.start_time else None
            if start_time != post.start_time:
                post.start_time = self._validate_start_time(data.start_time, now)
                post.meeting_start_notified_at = None
                time_changed = True

        change = await self.promote_waiters(post, now)
        await self.repos.session.commit()
        logger.info(f"Game post {post.id} updated by {user.user_id}")

        detail = await self.get_detail(post.id, user)
        game_name = detail.game_name
        sends = await self._change_sends(post, change, game_name)
        if time_changed:
            members = [uid for uid in await self.repos.participants.active_member_user_ids(post.id) if uid != user.user_id]
            if members:
                sends.append(
                    lambda: self.notifications.send_game_event(
                        post,
                        NotificationType.PARTICIPATING_GAME_UPDATE,
                        NotificationEvent.TIME_CHANGE,
                        members,
                        sender_id=user.user_id,
                        game_name=game_name,
                    )
                )
        await self._notify_safely(post.id, sends)
        return detail

    async def delete_post(self, post_id: int, user: CurrentUser) -> None:
        """Soft delete (leader or admin) and notify everyone involved."""
        post = await self._get_post(post_id, for_update=True)
        if not user.is_admin:
            await self._require_leader(post, user)
        leader = await self.repos.participants.get_leader(post.id)
        members = await self.repos.participants.active_member_user_ids(post.id)
        waiters = await self._cancel_active_waiters(post)
        post.status = GamePostStatus.DELETED.value
        await self.repos.game_posts.update(post)
        await self.repos.session.commit()
        log_domain_event("game_post.deleted", game_post_id=post.id, by=user.user_id)
        logger.info(f"Game post {post.id} deleted by {user.user_id}")

        game_name = await self.game_name_for(post)
        sends = self._roster_sends(
            post,
            NotificationEvent.GAME_CANCELLED,
            leader_id=leader.user_id if leader else None,
            member_ids=members,
            actor=user,
            game_name=game_name,
        )
        sends += self._waiting_sends(post, NotificationEvent.GAME_CANCELLED, waiters, game_name)
        await self._notify_safely(post.id, sends)

    async def close_post(self, post_id: int, user: CurrentUser) -> GamePostStatusRead:
        """Stop recruiting: OPEN/FULL become EXPIRED."""
        post = await self._get_post(post_id, for_update=True)
        await self._require_leader(post, user)
        if not _recruiting(post):
            raise BadRequestError(f"A {post.status} post cannot be closed")
        await self._cancel_active_waiters(post)
        post.status = GamePostStatus.EXPIRED.value
        await self.repos.game_posts.update(post)
        await self.repos.session.commit()
        logger.info(f"Game post {post.id} closed by {user.user_id}")
        return await self._status_read(post)

    async def toggle_status(self, post_id: int, user: CurrentUser) -> GamePostStatusRead:
        """OPEN/FULL -> COMPLETED, COMPLETED -> OPEN or FULL by capacity."""
        post = await self._get_post(post_id, for_update=True)
        await self._require_leader(post, user)
        if _recruiting(post):
            post.status = GamePostStatus.COMPLETED.value
        elif post.status == GamePostStatus.COMPLETED.value:
            post.status = GamePostStatus.OPEN.value
            self._apply_capacity_status(post, await self.repos.participants.active_count(post.id))
        else:
            raise BadRequestError(f"A {post.status} post cannot change its completion state")
        await self.repos.game_posts.update(post)
        await self.repos.session.commit()
        logger.info(f"Game post {post.id} status toggled to {post.status}")
        return await self._status_read(post)

    # =====================================================================
    # Roster
    # =====================================================================

    async def participate(self, post_id: int, user: CurrentUser) -> GamePostDetail:
        """Join a post directly.

        Raises:
            BadRequestError: For the leader, an active participant or a non-recruiting post
            ConflictError: When the post is full; carries ``X-Requires-Waiting``
        """
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        existing = await self.repos.participants.get_for_user(post.id, user.user_id)
        if existing is not None and existing.is_leader:
            raise BadRequestError("The leader already participates")
        if existing is not None and existing.status == ParticipantStatus.ACTIVE.value:
            raise BadRequestError("Already participating")
        if post.status == GamePostStatus.FULL.value:
            raise ConflictError("The game is full, join the waiting list instead", headers=REQUIRES_WAITING_HEADERS)
        if post.status != GamePostStatus.OPEN.value:
            raise BadRequestError(f"A {post.status} post is not recruiting")
        active = await self.repos.participants.active_count(post.id)
        if active >= post.max_participants:
            raise ConflictError("The game is full, join the waiting list instead", headers=REQUIRES_WAITING_HEADERS)

        await self._join_member(post, user.user_id, now)
        entry = await self.repos.waiting.get_active_for_user(post.id, user.user_id)
        if entry is not None:
            entry.status = WaitingStatus.CANCELED.value
            await self.repos.waiting.update(entry)
        change = RosterChange(became_full=self._apply_capacity_status(post, active + 1))
        await self.repos.game_posts.update(post)
        await self.repos.session.commit()
        log_domain_event("game_post.joined", game_post_id=post.id, user_id=user.user_id)

        detail = await self.get_detail(post.id, user)
        sends = await self._change_sends(post, change, detail.game_name, NotificationEvent.MEMBER_JOIN, user)
        await self._notify_safely(post.id, sends)
        return detail

    async def cancel_participation(self, post_id: int, user: CurrentUser) -> GamePostDetail:
        """Leave a recruiting post; the slot goes to the head of the waiting queue."""
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        participant = await self.repos.participants.get_for_user(post.id, user.user_id)
        if participant is None or participant.status != ParticipantStatus.ACTIVE.value:
            raise NotFoundError("Not participating in this game")
        if not _recruiting(post):
            raise BadRequestError(f"Cannot cancel on a {post.status} post, leave early instead")
        if participant.is_leader:
            await self._transfer_leadership(post, participant)

        await self.repos.participants.delete(participant.id)
        change = await self.promote_waiters(post, now)
        await self.repos.session.commit()
        log_domain_event("game_post.left", game_post_id=post.id, user_id=user.user_id)

        detail = await self.get_detail(post.id, user)
        sends = await self._change_sends(post, change, detail.game_name, NotificationEvent.MEMBER_LEAVE, user)
        await self._notify_safely(post.id, sends)
        return detail

    async def transfer_leader(self, post_id: int, user: CurrentUser, participant_id: int) -> GamePostDetail:
        post = await self._get_post(post_id, for_update=True)
        leader = await self._require_leader(post, user)
        target = await self.repos.participants.get_by_id(participant_id)
        if (
            target is None
            or target.game_post_id != post.id
            or target.status != ParticipantStatus.ACTIVE.value
            or target.participant_type != ParticipantType.MEMBER.value
            or target.user_id is None
        ):
            raise BadRequestError("Leadership can only go to an active member of this game")
        if target.id == leader.id:
            raise BadRequestError("Already the leader")
        leader.is_leader = False
        target.is_leader = True
        await self.repos.participants.update(leader)
        await self.repos.participants.update(target)
        await self.repos.session.commit()
        logger.info(f"Leadership of game post {post.id} transferred to {target.user_id}")
        return await self.get_detail(post.id, user)

    async def add_guest(self, post_id: int, user: CurrentUser, name: str) -> GamePostDetail:
        post = await self._get_post(post_id, for_update=True)
        await self._require_leader(post, user)
        guest_name = self._validate_guest_name(name)
        if _closed(post):
            raise BadRequestError(f"Cannot add guests to a {post.status} post")
        active = await self.repos.participants.active_count(post.id)
        if active >= post.max_participants:
            raise BadRequestError("No free slot for a guest")
        await self.repos.participants.create(
            GameParticipant(
                game_post_id=post.id,
                participant_type=ParticipantType.GUEST.value,
                guest_name=guest_name,
                joined_at=utc_now(),
            )
        )
        change = RosterChange(became_full=self._apply_capacity_status(post, active + 1))
        await self.repos.game_posts.update(post)
        await self.repos.session.commit()

        detail = await self.get_detail(post.id, user)
        await self._notify_safely(post.id, await self._change_sends(post, change, detail.game_name))
        return detail

    async def remove_participant(self, post_id: int, user: CurrentUser, participant_id: int) -> GamePostDetail:
        """Leader removes a guest or member; the freed slot is filled from the queue."""
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        await self._require_leader(post, user)
        target = await self.repos.participants.get_by_id(participant_id)
        if target is None or target.game_post_id != post.id:
            raise NotFoundError("Participant not found")
        if target.is_leader:
            raise BadRequestError("Transfer leadership before removing the leader")
        await self.repos.participants.delete(target.id)
        change = await self.promote_waiters(post, now)
        await self.repos.session.commit()

        detail = await self.get_detail(post.id, user)
        await self._notify_safely(post.id, await self._change_sends(post, change, detail.game_name))
        return detail

    async def leave_early(self, post_id: int, user: CurrentUser, participant_id: Optional[int] = None) -> GamePostDetail:
        """Leave a running game; every WAITING entry is invited to take the slot."""
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        if post.status != GamePostStatus.IN_PROGRESS.value:
            raise BadRequestError("Leaving early is only possible while the game is in progress")

        if participant_id is None:
            target = await self.repos.participants.get_for_user(post.id, user.user_id)
            if target is None:
                raise NotFoundError("Not participating in this game")
        else:
            target = await self.repos.participants.get_by_id(participant_id)
            if target is None or target.game_post_id != post.id:
                raise NotFoundError("Participant not found")
            if target.user_id != user.user_id:
                await self._require_leader(post, user)
        if target.status != ParticipantStatus.ACTIVE.value:
            raise BadRequestError("Participant is not active")
        if target.is_leader:
            await self._transfer_leadership(post, target)

        target.status = ParticipantStatus.LEFT_EARLY.value
        target.left_at = now
        await self.repos.participants.update(target)
        invited = await self.repos.waiting.list_for_post(post.id, [WaitingStatus.WAITING])
        for entry in invited:
            entry.status = WaitingStatus.INVITED.value
            entry.invited_at = now
            await self.repos.waiting.update(entry)
        await self.repos.session.commit()
        log_domain_event("game_post.left_early", game_post_id=post.id, participant_id=target.id)

        detail = await self.get_detail(post.id, user)
        sends = await self._change_sends(post, RosterChange(), detail.game_name, NotificationEvent.MEMBER_LEAVE, user)
        sends += self._waiting_sends(post, NotificationEvent.INVITED, [e.user_id for e in invited], detail.game_name)
        await self._notify_safely(post.id, sends)
        return detail

    # =====================================================================
    # Waiting list
    # =====================================================================

    async def join_waiting_list(
        self, post_id: int, user: CurrentUser, available_time: Optional[datetime] = None
    ) -> WaitingRead:
        """Queue behind a post.

        A future ``available_time`` queues as TIME_WAITING; a running game with a
        free slot invites directly; otherwise the entry is WAITING.
        """
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        if _closed(post):
            raise BadRequestError(f"A {post.status} post has no waiting list")
        participant = await self.repos.participants.get_for_user(post.id, user.user_id)
        if participant is not None and participant.is_leader:
            raise BadRequestError("The leader cannot join the waiting list")
        if participant is not None and participant.status == ParticipantStatus.ACTIVE.value:
            raise BadRequestError("Already participating")
        entry = await self.repos.waiting.get_for_user(post.id, user.user_id)
        if entry is not None and entry.status in {s.value for s in ACTIVE_WAITING_STATUSES}:
            raise BadRequestError("Already on the waiting list")

        available = to_naive_utc(available_time) if available_time else None
        later = available is not None and available > now
        free = await self.repos.participants.active_count(post.id) < post.max_participants
        if post.status == GamePostStatus.OPEN.value and free and not later:
            raise BadRequestError("The game has free slots, participate directly")

        if later:
            status = WaitingStatus.TIME_WAITING
        elif post.status == GamePostStatus.IN_PROGRESS.value and free:
            status = WaitingStatus.INVITED
        else:
            status = WaitingStatus.WAITING

        if entry is None:
            entry = WaitingParticipant(game_post_id=post.id, user_id=user.user_id)
        entry.status = status.value
        entry.available_time = available
        entry.requested_at = now
        entry.invited_at = now if status is WaitingStatus.INVITED else None
        entry = await self.repos.waiting.create(entry) if entry.id is None else await self.repos.waiting.update(entry)
        await self.repos.session.commit()
        log_domain_event("game_post.waiting_joined", game_post_id=post.id, user_id=user.user_id, status=entry.status)
        return self._waiting_read(entry, {user.user_id: user.display_name})

    async def cancel_waiting(self, post_id: int, user: CurrentUser) -> WaitingRead:
        await self._get_post(post_id)
        entry = await self.repos.waiting.get_active_for_user(post_id, user.user_id)
        if entry is None:
            raise NotFoundError("Not on the waiting list")
        entry.status = WaitingStatus.CANCELED.value
        await self.repos.waiting.update(entry)
        await self.repos.session.commit()
        return self._waiting_read(entry, {user.user_id: user.display_name})

    async def _own_waiting_entry(self, post_id: int, waiting_id: int, user: CurrentUser) -> WaitingParticipant:
        entry = await self.repos.waiting.get_by_id(waiting_id)
        if entry is None or entry.game_post_id != post_id:
            raise NotFoundError("Waiting entry not found")
        if entry.user_id != user.user_id:
            raise ForbiddenError("Not your waiting entry")
        return entry

    async def accept_invitation(self, post_id: int, waiting_id: int, user: CurrentUser) -> GamePostDetail:
        """Take a slot in a running game after an invitation."""
        now = utc_now()
        post = await self._get_post(post_id, for_update=True)
        entry = await self._own_waiting_entry(post.id, waiting_id, user)
        if entry.status != WaitingStatus.INVITED.value:
            raise BadRequestError("Only invitations can be accepted")
        if post.status != GamePostStatus.IN_PROGRESS.value:
            raise BadRequestError("The game is not in progress")
        if await self.repos.participants.active_count(post.id) >= post.max_participants:
            raise ConflictError("The game is full")

        await self._join_member(post, user.user_id, now)
        await self.repos.waiting.delete(entry.id)
        await self.repos.session.commit()
        log_domain_event("game_post.invitation_accepted", game_post_id=post.id, user_id=user.user_id)

        detail = await self.get_detail(post.id, user)
        sends = await self._change_sends(post, RosterChange(), detail.game_name, NotificationEvent.MEMBER_JOIN, user)
        await self._notify_safely(post.id, sends)
        return detail

    async def cancel_waiting_entry(self, post_id: int, waiting_id: int, user: CurrentUser) -> WaitingRead:
        await self._get_post(post_id)
        entry = await self._own_waiting_entry(post_id, waiting_id, user)
        if entry.status not in {s.value for s in ACTIVE_WAITING_STATUSES}:
            raise BadRequestError(f"A {entry.status} entry cannot be cancelled")
        entry.status = WaitingStatus.CANCELED.value
        await self.repos.waiting.update(entry)
        await self.repos.session.commit()
        return self._waiting_read(entry, {user.user_id: user.display_name})

    async def decide_waiting_entry(self, post_id: int, waiting_id: int) -> None:
        """Manual accept/reject by the leader was replaced by automatic promotion."""
        raise GoneError("Manual waiting-list decisions are no longer supported; promotion is automatic")
