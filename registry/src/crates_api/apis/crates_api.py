# coding: utf-8

from typing import Literal, Optional

from fastapi import (  # noqa: F401
    APIRouter,
    Body,
    Depends,
    Path,
    Query,
    Request,
    Response,
    status,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse

from crates_api.http.errors import bad_request, registry_errors
from crates_api.models import (
    CrateDetail,
    CrateList,
    DependencyList,
    DownloadLocation,
    DownloadsResponse,
    Error,
    FollowingResponse,
    OkResponse,
    OwnerList,
    OwnersRequest,
    PublishResponse,
    Summary,
    VersionList,
)
from crates_api.security_api import get_current_actor, require_actor
from crates_api.service.facade import get_registry_services
from crates_api.service.listing import CrateQuery

router = APIRouter()

_ERRORS = {
    400: {"model": Error, "description": "Invalid input"},
    401: {"model": Error, "description": "Unauthorized"},
    403: {"model": Error, "description": "Forbidden"},
    404: {"model": Error, "description": "Not Found"},
}


@router.get(
    "/api/v1/crates",
    responses={200: {"model": CrateList, "description": "OK"}, **_ERRORS},
    tags=["Crates"],
    summary="List or search crates",
    response_model_by_alias=True,
)
def list_crates(
    q: Optional[str] = Query(None, description="Full text search."),
    letter: Optional[str] = Query(None, description="First letter of the crate name."),
    keyword: Optional[str] = Query(None),
    category: Optional[str] = Query(None, description="Category slug; includes subcategories."),
    user_id: Optional[int] = Query(None, description="Only crates owned by this user."),
    following: Optional[str] = Query(None, description="Only crates followed by the caller."),
    sort: Literal["alpha", "downloads"] = Query("alpha"),
    page: int = Query(1),
    per_page: Optional[int] = Query(None),
    actor_id: Optional[int] = Depends(get_current_actor),
) -> CrateList:
    query = CrateQuery(
        q=q or None,
        letter=letter or None,
        keyword=keyword or None,
        category=category or None,
        user_id=user_id,
        following=following is not None,
        sort=sort,
        page=page,
        per_page=per_page,
    )
    with registry_errors():
        return get_registry_services().listing.search(query, actor_id=actor_id)


@router.put(
    "/api/v1/crates/new",
    responses={200: {"model": PublishResponse, "description": "Published"}, **_ERRORS},
    tags=["Crates"],
    summary="Publish a crate version",
    response_model_by_alias=True,
)
async def publish_crate(
    request: Request,
    actor_id: int = Depends(require_actor),
) -> PublishResponse:
    body = await request.body()
    if not body:
        raise bad_request("invalid upload request: empty body")
    with registry_errors():
        return await run_in_threadpool(get_registry_services().publisher.publish, body, actor_id=actor_id)


@router.get(
    "/api/v1/summary",
    responses={200: {"model": Summary, "description": "OK"}},
    tags=["Crates"],
    summary="Registry front page summary",
    response_model_by_alias=True,
)
def get_summary() -> Summary:
    with registry_errors():
        return get_registry_services().listing.summary()


@router.get(
    "/api/v1/crates/{crate_id}",
    responses={200: {"model": CrateDetail, "description": "OK"}, **_ERRORS},
    tags=["Crates"],
    summary="Show a crate",
    response_model_by_alias=True,
)
def show_crate(crate_id: str = Path(..., description="Crate name")) -> CrateDetail:
    with registry_errors():
        return get_registry_services().listing.show(crate_id)


@router.get(
    "/api/v1/crates/{crate_id}/versions",
    responses={200: {"model": VersionList, "description": "OK"}, **_ERRORS},
    tags=["Crates"],
    summary="List crate versions",
    response_model_by_alias=True,
)
def list_versions(crate_id: str = Path(..., description="Crate name")) -> VersionList:
    with registry_errors():
        return get_registry_services().listing.versions(crate_id)


@router.get(
    "/api/v1/crates/{crate_id}/owners",
    responses={200: {"model": OwnerList, "description": "OK"}, **_ERRORS},
    tags=["Owners"],
    summary="List crate owners",
    response_model_by_alias=True,
)
def list_owners(crate_id: str = Path(..., description="Crate name")) -> OwnerList:
    with registry_errors():
        return get_registry_services().ownership.list_owners(crate_id)


def _owner_logins(owners_request: OwnersRequest) -> list[str]:
    logins = owners_request.logins()
    if logins is None:
        raise bad_request("invalid json request: expected `owners` or `users`")
    return logins


@router.put(
    "/api/v1/crates/{crate_id}/owners",
    responses={200: {"model": OkResponse, "description": "OK"}, **_ERRORS},
    tags=["Owners"],
    summary="Add crate owners",
    response_model_by_alias=True,
)
def add_owners(
    crate_id: str = Path(..., description="Crate name"),
    owners_request: OwnersRequest = Body(...),
    actor_id: int = Depends(require_actor),
) -> OkResponse:
    logins = _owner_logins(owners_request)
    with registry_errors():
        get_registry_services().ownership.add_owners(crate_id, logins, actor_id=actor_id)
    return OkResponse()


@router.delete(
    "/api/v1/crates/{crate_id}/owners",
    responses={200: {"model": OkResponse, "description": "OK"}, **_ERRORS},
    tags=["Owners"],
    summary="Remove crate owners",
    response_model_by_alias=True,
)
def remove_owners(
    crate_id: str = Path(..., description="Crate name"),
    owners_request: OwnersRequest = Body(...),
    actor_id: int = Depends(require_actor),
) -> OkResponse:
    logins = _owner_logins(owners_request)
    with registry_errors():
        get_registry_services().ownership.remove_owners(crate_id, logins, actor_id=actor_id)
    return OkResponse()


@router.get(
    "/api/v1/crates/{crate_id}/reverse_dependencies",
    responses={200: {"model": DependencyList, "description": "OK"}, **_ERRORS},
    tags=["Crates"],
    summary="List crates depending on a crate",
    response_model_by_alias=True,
)
def reverse_dependencies(
    crate_id: str = Path(..., description="Crate name"),
    page: int = Query(1),
    per_page: Optional[int] = Query(None),
) -> DependencyList:
    with registry_errors():
        return get_registry_services().listing.reverse_dependencies(crate_id, page=page, per_page=per_page)


@router.get(
    "/api/v1/crates/{crate_id}/downloads",
    responses={200: {"model": DownloadsResponse, "description": "OK"}, **_ERRORS},
    tags=["Downloads"],
    summary="Recent download history",
    response_model_by_alias=True,
)
def crate_downloads(crate_id: str = Path(..., description="Crate name")) -> DownloadsResponse:
    with registry_errors():
        return get_registry_services().downloads.crate_downloads(crate_id)


@router.get(
    "/api/v1/crates/{crate_id}/{version}/download",
    responses={
        200: {"model": DownloadLocation, "description": "Artifact location"},
        302: {"description": "Redirect to the artifact"},
        **_ERRORS,
    },
    tags=["Downloads"],
    summary="Download a crate version",
)
def download_crate(
    request: Request,
    crate_id: str = Path(..., description="Crate name"),
    version: str = Path(..., description="Exact version number"),
) -> Response:
    with registry_errors():
        location = get_registry_services().downloads.download_location(crate_id, version)
    if "json" in request.headers.get("accept", ""):
        return Response(
            content=DownloadLocation(url=location).to_json(),
            media_type="application/json",
        )
    return RedirectResponse(location, status_code=status.HTTP_302_FOUND)


@router.put(
    "/api/v1/crates/{crate_id}/follow",
    responses={200: {"model": OkResponse, "description": "OK"}, **_ERRORS},
    tags=["Follows"],
    summary="Follow a crate",
    response_model_by_alias=True,
)
def follow_crate(
    crate_id: str = Path(..., description="Crate name"),
    actor_id: int = Depends(require_actor),
) -> OkResponse:
    with registry_errors():
        get_registry_services().follows.follow(crate_id, actor_id=actor_id)
    return OkResponse()


@router.delete(
    "/api/v1/crates/{crate_id}/follow",
    responses={200: {"model": OkResponse, "description": "OK"}, **_ERRORS},
    tags=["Follows"],
    summary="Unfollow a crate",
    response_model_by_alias=True,
)
def unfollow_crate(
    crate_id: str = Path(..., description="Crate name"),
    actor_id: int = Depends(require_actor),
) -> OkResponse:
    with registry_errors():
        get_registry_services().follows.unfollow(crate_id, actor_id=actor_id)
    return OkResponse()


@router.get(
    "/api/v1/crates/{crate_id}/following",
    responses={200: {"model": FollowingResponse, "description": "OK"}, **_ERRORS},
    tags=["Follows"],
    summary="Whether the caller follows a crate",
    response_model_by_alias=True,
)
def crate_following(
    crate_id: str = Path(..., description="Crate name"),
    actor_id: int = Depends(require_actor),
) -> FollowingResponse:
    with registry_errors():
        following = get_registry_services().follows.following(crate_id, actor_id=actor_id)
    return FollowingResponse(following=following)
