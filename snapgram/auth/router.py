# snapgram/auth/router.py
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from snapgram.core.responses import ApiResponse
from snapgram.db.mongodb import get_database
from . import service
from .schemas import AuthPayload, LoginRequest, RegisterRequest

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED
)
async def register(
    data: RegisterRequest,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Register a new user and return it with a token"""
    payload = await service.register_user(db, data)
    return ApiResponse(message="User registered successfully", data=payload)

@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(
    data: LoginRequest,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Authenticate by email and password"""
    payload = await service.login_user(db, data)
    return ApiResponse(message="Logged in successfully", data=payload)
