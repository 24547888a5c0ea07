"""
Profile API Endpoints.

The caller's own profile: registration, terms agreement, favorite games and
the history of game-mate meetups they joined.
"""

from fastapi import APIRouter, Query

from gclub.core.models.io.profile import (
    FavoriteGamesRead,
    FavoriteGamesUpdate,
    GameMateHistoryResponse,
    ProfileRead,
    ProfileUpsert,
    PublicProfileRead,
    TermsAgreement,
    TermsRead,
)
from gclub.server.services.deps import CurrentUserDep, ProfileServiceDep

router = APIRouter()


@router.get(
    "",
    response_model=ProfileRead,
    summary="Get My Profile",
    description="Return the caller's profile. A default profile with role NONE is created on first access.",
    response_description="The caller's profile with role name and favorite game ids.",
    responses={
        200: {"description": "Profile returned"},
        401: {"description": "Missing or invalid bearer token"},
    },
)
async def get_profile(user: CurrentUserDep, service: ProfileServiceDep) -> ProfileRead:
    """
    Get the caller's profile.

    The default name is the local part of the account email.
    """
    return await service.get_or_create(user)


@router.put(
    "",
    response_model=ProfileRead,
    summary="Save My Profile",
    description="Create or update the caller's profile. The role of an existing profile is never changed here.",
    response_description="The saved profile.",
    responses={
        200: {"description": "Profile saved"},
        400: {"description": "Invalid name or birth date"},
        401: {"description": "Missing or invalid bearer token"},
    },
)
@router.post("", response_model=ProfileRead, include_in_schema=False)
async def upsert_profile(data: ProfileUpsert, user: CurrentUserDep, service: ProfileServiceDep) -> ProfileRead:
    """
    Create or update the caller's profile.

    - **name**: Display name, trimmed, 1 to 50 characters.
    - **birth_date**: Required, not in the future.
    - **image**: Optional profile image URL.
    """
    return await service.upsert(user, data)


@router.get(
    "/terms",
    response_model=TermsRead,
    summary="Get Terms Agreement",
    description="Return whether the caller accepted the terms of service and the privacy policy.",
    response_description="Agreement flags with timestamps.",
    responses={404: {"description": "Profile not registered yet"}},
)
async def get_terms(user: CurrentUserDep, service: ProfileServiceDep) -> TermsRead:
    return await service.get_terms(user)


@router.post(
    "/terms",
    response_model=TermsRead,
    summary="Agree To Terms",
    description="Record the caller's agreement. Both the terms of service and the privacy policy must be accepted.",
    response_description="Agreement flags with timestamps.",
    responses={
        400: {"description": "One of the agreements is missing"},
        404: {"description": "Profile not registered yet"},
    },
)
async def agree_terms(data: TermsAgreement, user: CurrentUserDep, service: ProfileServiceDep) -> TermsRead:
    """
    Agree to the terms.

    - **terms_agreed**: Must be true.
    - **privacy_agreed**: Must be true.
    """
    return await service.agree_terms(user, data)


@router.get(
    "/favorite-games",
    response_model=FavoriteGamesRead,
    summary="List Favorite Games",
    response_description="Ids of the caller's favorite games.",
)
async def get_favorite_games(user: CurrentUserDep, service: ProfileServiceDep) -> FavoriteGamesRead:
    return await service.favorite_games(user)


@router.put(
    "/favorite-games",
    response_model=FavoriteGamesRead,
    summary="Replace Favorite Games",
    description="Replace the caller's favorite games. They drive the `favorites` mode of new game post notifications.",
    response_description="The saved favorite game ids.",
    responses={400: {"description": "Unknown game ids"}},
)
async def replace_favorite_games(
    data: FavoriteGamesUpdate, user: CurrentUserDep, service: ProfileServiceDep
) -> FavoriteGamesRead:
    return await service.replace_favorite_games(user, data.game_ids)


@router.get(
    "/game-mate-history",
    response_model=GameMateHistoryResponse,
    summary="Game-mate History",
    description="Game posts the caller took part in, including ones they left early, latest start time first.",
    response_description="Paginated history items.",
)
async def game_mate_history(
    user: CurrentUserDep,
    service: ProfileServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
) -> GameMateHistoryResponse:
    return await service.game_mate_history(user, page, limit)


@router.get(
    "/{user_id}",
    response_model=PublicProfileRead,
    summary="Get Member Profile",
    description="Another member's public profile: name, birth date, image and role.",
    response_description="The member's public profile.",
    responses={
        401: {"description": "Missing or invalid bearer token"},
        404: {"description": "Profile not found"},
    },
)
async def get_member_profile(user_id: str, user: CurrentUserDep, service: ProfileServiceDep) -> PublicProfileRead:
    return await service.public_profile(user_id)
