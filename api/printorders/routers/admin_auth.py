from fastapi import APIRouter, HTTPException, Response, status
from .. import config
from ..auth import ADMIN_COOKIE
from ..schemas import LoginRequest
from ..utils import make_token

router = APIRouter()

@router.post("/login")
def login(payload: LoginRequest, response: Response):
    if not config.ADMIN_PASSWORD or payload.password != config.ADMIN_PASSWORD:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid password")
    response.set_cookie(ADMIN_COOKIE, make_token({"role": "admin"}), path="/", httponly=True, samesite="lax")
    return {"ok": True}

@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(ADMIN_COOKIE, path="/")
    return {"ok": True}
