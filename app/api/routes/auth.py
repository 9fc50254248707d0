from fastapi import APIRouter, Depends

from app.api.dependencies import current_user, get_user_service, read_json_body
from app.core.user_service import UserService
from app.models.user import LoginResponse, UserOut

router = APIRouter()

@router.post("/register", response_model=UserOut, status_code=201)
async def register(
    body: dict = Depends(read_json_body),
    users: UserService = Depends(get_user_service),
    ):
    return await users.register(body)

@router.post("/login", response_model=LoginResponse)
async def login(
    body: dict = Depends(read_json_body),
    users: UserService = Depends(get_user_service),
    ):
    return await users.login(body)

@router.get("/me", response_model=UserOut)
def me(user: UserOut = Depends(current_user)):
    return user
