"""User Routes: signup, login and public listing.

Invariants:
    - Responses never include password hashes
    - signup stores the avatar first and releases it again if signup fails
    - Duplicate email -> 422, bad credentials -> 403
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from placeshare.api.dependencies import (
    discard_upload, get_account_service, get_asset_store, read_upload,
)
from placeshare.config import get_settings
from placeshare.core.repository_protocols import AssetStore
from placeshare.schemas.user import (
    AuthResponse, LoginRequest, UserListEnvelope, UserResponse,
)
from placeshare.services.accounts import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListEnvelope)
async def get_users(accounts: AccountService = Depends(get_account_service)):
    users = await accounts.list_users()
    return UserListEnvelope(users=[UserResponse.from_model(u) for u in users])


@router.post(
    "/signup", response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    name: str = Form(..., min_length=1, max_length=120),
    email: str = Form(..., min_length=3, max_length=320),
    password: str = Form(..., min_length=6, max_length=200),
    image: UploadFile = File(...),
    accounts: AccountService = Depends(get_account_service),
    assets: AssetStore = Depends(get_asset_store),
):
    data = await read_upload(image, get_settings().max_upload_bytes)
    image_path = await assets.store(data, image.content_type or "")
    try:
        result = await accounts.signup(name, email, password, image_path)
    except Exception:
        await discard_upload(assets, image_path)
        raise
    return AuthResponse(
        user_id=result.user_id, email=result.email, token=result.token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    result = await accounts.login(body.email, body.password)
    return AuthResponse(
        user_id=result.user_id, email=result.email, token=result.token,
    )
