from fastapi import APIRouter, status

from services.scheduler.models import get_session
from services.scheduler.schemas.users import CreateUserRequest, UserResponse
from services.scheduler.services.user_directory import UserDirectory

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(request: CreateUserRequest) -> UserResponse:
    with get_session() as session:
        return UserDirectory(session).create_user(request)
