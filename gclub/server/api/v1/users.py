"""
Users API Endpoints.

Member lookup used when inviting people to game posts.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from gclub.core.models.io.profile import UserSearchResult
from gclub.server.services.deps import CurrentUserDep, ProfileServiceDep

router = APIRouter()


@router.get(
    "/search",
    response_model=List[UserSearchResult],
    summary="Search Members",
    description=(
        "Up to 10 profiles whose name contains `q`, by name. Queries under two characters return an empty list; "
        "when nothing matches, one guest entry named after the query is returned."
    ),
    response_description="Matching members or a guest entry.",
    responses={
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Membership not approved yet"},
    },
)
async def search_users(
    user: CurrentUserDep, service: ProfileServiceDep, q: Optional[str] = Query(None, description="Name fragment")
) -> List[UserSearchResult]:
    return await service.search_users(user, q)
