"""Account login endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from screenlink.database import get_session
from screenlink.models.account import Account
from screenlink.schemas.auth import LoginRequest, LoginResponse
from screenlink.utils.security import create_access_token, verify_password

router = APIRouter(tags=["auth"])


@router.post("/auth/login", response_model=LoginResponse)
def login(request: LoginRequest, session: Session = Depends(get_session)):
    """Exchange account credentials for an access token."""
    account = session.exec(
        select(Account).where(Account.email == request.email.strip().lower())
    ).first()
    if not account or not verify_password(request.password, account.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return LoginResponse(access_token=create_access_token(account.id))
