"""Session endpoints backed by the external identity provider."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.dependencies.auth import bearer_token, get_current_user
from app.api.dependencies.services import get_views
from app.schemas import SignOutResponse, UserOut
from app.services.identity import IdentityClient, User
from app.services.portfolio import PortfolioViewRegistry

router = APIRouter()


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return UserOut(id=current_user.id, email=current_user.email)


@router.post("/logout", response_model=SignOutResponse)
async def logout(
    request: Request,
    token: str = Depends(bearer_token),
    current_user: User = Depends(get_current_user),
    views: PortfolioViewRegistry = Depends(get_views),
) -> SignOutResponse:
    identity: IdentityClient = request.app.state.identity
    signed_out = await identity.sign_out(token)
    views.discard(current_user.id)
    return SignOutResponse(signed_out=signed_out)


__all__ = ["router"]
