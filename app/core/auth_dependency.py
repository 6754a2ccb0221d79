from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.core import config
from app.core.errors import AuthorizationError
from app.core.security import decode_access_token
from app.db.session import get_db
from app.db.models.user import User, UserRole, ProfileStatus

# Tokens are issued by the external identity provider.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the calling user from the bearer token."""
    if not token:
        raise _credentials_error()

    payload = decode_access_token(token)
    if payload is None:
        raise _credentials_error()

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise _credentials_error()

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise _credentials_error()

    # The token role must still match the stored role
    token_role = payload.get("role")
    if token_role and token_role != user.role:
        raise _credentials_error()

    return user


def require_role(*roles: UserRole):
    """
    Dependency factory gating a route to the given roles.

    Usage:
        @router.get("/x")
        def x(user: User = Depends(require_role(UserRole.TPO))):
            ...
    """
    allowed = {role.value for role in roles}

    def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise AuthorizationError(
                f"This action requires one of the roles: {', '.join(sorted(allowed))}"
            )
        return user

    return role_checker


def require_approved_student(user: User = Depends(require_role(UserRole.STUDENT))) -> User:
    """Students may only act on drives once their HOD has approved the profile."""
    if config.REQUIRE_PROFILE_APPROVAL and user.profile_status != ProfileStatus.APPROVED.value:
        raise AuthorizationError(
            "Your profile must be approved by your HOD before applying",
            profileStatus=user.profile_status,
        )
    return user
