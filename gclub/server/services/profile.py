"""Profile Service: the caller's profile, terms agreement, favorites and game history."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from gclub.core.database.base import utc_now
from gclub.core.database.entities.users import UserProfile
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ForbiddenError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import RoleName
from gclub.core.models.io.common import Pagination
from gclub.core.models.io.profile import (
    FavoriteGamesRead,
    GameMateHistoryItem,
    GameMateHistoryResponse,
    ProfileRead,
    ProfileUpsert,
    PublicProfileRead,
    TermsAgreement,
    TermsRead,
    UserSearchResult,
)
from gclub.server.services.auth import CurrentUser

logger = get_logger(__name__)

MAX_NAME_LENGTH = 50
MIN_SEARCH_LENGTH = 2
MAX_SEARCH_RESULTS = 10


class ProfileService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _default_role_id(self) -> Optional[int]:
        role = await self.repos.roles.get_default() or await self.repos.roles.get_by_name(RoleName.NONE)
        return role.id if role else None

    async def _to_read(self, profile: UserProfile) -> ProfileRead:
        role = await self.repos.roles.get_by_id(profile.role_id) if profile.role_id is not None else None
        return ProfileRead.model_validate(
            {
                **profile.model_dump(),
                "role_name": role.name if role else RoleName.NONE.value,
                "favorite_game_ids": await self.repos.games.favorite_game_ids(profile.user_id),
            }
        )

    async def _require(self, user: CurrentUser) -> UserProfile:
        profile = await self.repos.profiles.get_by_user_id(user.user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def get_or_create(self, user: CurrentUser) -> ProfileRead:
        """The caller's profile; a default one (role NONE) is created on first access."""
        profile = await self.repos.profiles.get_by_user_id(user.user_id)
        if profile is None:
            email = user.user.email or ""
            profile = await self.repos.profiles.create(
                UserProfile(
                    user_id=user.user_id,
                    name=(email.split("@", 1)[0] or "user")[:MAX_NAME_LENGTH],
                    role_id=await self._default_role_id(),
                )
            )
            await self.repos.session.commit()
            logger.info(f"Default profile created for {user.user_id}")
        return await self._to_read(profile)

    async def upsert(self, user: CurrentUser, data: ProfileUpsert) -> ProfileRead:
        name = (data.name or "").strip()
        if not 1 <= len(name) <= MAX_NAME_LENGTH:
            raise BadRequestError(f"Name must be 1 to {MAX_NAME_LENGTH} characters")
        if data.birth_date > date.today():
            raise BadRequestError("birth_date cannot be in the future")

        profile = await self.repos.profiles.get_by_user_id(user.user_id)
        if profile is None:
            profile = await self.repos.profiles.create(
                UserProfile(
                    user_id=user.user_id,
                    name=name,
                    birth_date=data.birth_date,
                    image=data.image,
                    role_id=await self._default_role_id(),
                )
            )
            logger.info(f"Profile registered for {user.user_id}")
        else:
            profile.name = name
            profile.birth_date = data.birth_date
            profile.image = data.image
            profile = await self.repos.profiles.update(profile)
        await self.repos.session.commit()
        return await self._to_read(profile)

    async def public_profile(self, user_id: str) -> PublicProfileRead:
        profile = await self.repos.profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        role = await self.repos.roles.get_by_id(profile.role_id) if profile.role_id is not None else None
        return PublicProfileRead.model_validate(
            {**profile.model_dump(), "role_name": role.name if role else RoleName.NONE.value}
        )

    async def search_users(self, user: CurrentUser, query: Optional[str]) -> List[UserSearchResult]:
        """Find members by name for invitations and guest slots.

        Queries shorter than two characters return nothing. When no profile
        matches, a single guest entry carrying the query as its name is
        returned so the caller can add the person as a guest.

        Raises:
            ForbiddenError: The caller is not an approved member
        """
        if not user.is_member:
            raise ForbiddenError("Available once your membership is approved")
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            return []
        profiles = await self.repos.profiles.search_by_name(query, limit=MAX_SEARCH_RESULTS)
        if not profiles:
            return [UserSearchResult(name=query, is_guest=True)]
        return [UserSearchResult(user_id=p.user_id, name=p.name, image=p.image) for p in profiles]

    async def get_terms(self, user: CurrentUser) -> TermsRead:
        return TermsRead.model_validate(await self._require(user))

    async def agree_terms(self, user: CurrentUser, data: TermsAgreement) -> TermsRead:
        if not (data.terms_agreed and data.privacy_agreed):
            raise BadRequestError("Both the terms of service and the privacy policy must be accepted")
        profile = await self._require(user)
        now = utc_now()
        profile.terms_agreed = profile.privacy_agreed = True
        profile.terms_agreed_at = profile.privacy_agreed_at = now
        profile = await self.repos.profiles.update(profile)
        await self.repos.session.commit()
        return TermsRead.model_validate(profile)

    async def favorite_games(self, user: CurrentUser) -> FavoriteGamesRead:
        return FavoriteGamesRead(game_ids=await self.repos.games.favorite_game_ids(user.user_id))

    async def replace_favorite_games(self, user: CurrentUser, game_ids: List[int]) -> FavoriteGamesRead:
        unknown = sorted(set(game_ids) - set(await self.repos.games.existing_ids(game_ids)))
        if unknown:
            raise BadRequestError(f"Unknown game ids: {unknown}")
        saved = await self.repos.games.replace_favorites(user.user_id, game_ids)
        await self.repos.session.commit()
        return FavoriteGamesRead(game_ids=saved)

    async def game_mate_history(self, user: CurrentUser, page: int = 1, limit: int = 10) -> GameMateHistoryResponse:
        """Games the caller joined (still active or left early), latest start first."""
        posts, total = await self.repos.game_posts.history_for_user(user.user_id, page, limit)
        post_ids = [post.id for post in posts]
        counts = await self.repos.participants.active_counts(post_ids)
        game_ids = list({post.game_id for post in posts if post.game_id is not None})
        games = {game.id: game.name for game in await self.repos.games.list_games(ids=game_ids)} if game_ids else {}

        items = []
        for post in posts:
            participant = await self.repos.participants.get_for_user(post.id, user.user_id)
            items.append(
                GameMateHistoryItem(
                    game_post_id=post.id,
                    title=post.title,
                    game_id=post.game_id,
                    game_name=games.get(post.game_id) if post.game_id is not None else post.custom_game_name,
                    start_time=post.start_time,
                    status=post.status,
                    participant_status=participant.status if participant else "",
                    is_leader=bool(participant and participant.is_leader),
                    participant_count=counts.get(post.id, 0),
                    max_participants=post.max_participants,
                )
            )
        return GameMateHistoryResponse(items=items, pagination=Pagination.build(page, limit, total))
