from fastapi import APIRouter, Depends

from dayfit.core.auth import AuthUser, current_user, optional_user

router = APIRouter(prefix="/user", tags=["user"])


@router.get("")
def get_user(user: AuthUser = Depends(current_user)):
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }


@router.get("/session")
def get_session(user: AuthUser | None = Depends(optional_user)):
    """
    Whether the request carries a valid session. Never answers 401.
    """
    return {"authenticated": user is not None}
