# snapgram/router.py (Main Router)
from fastapi import APIRouter

from snapgram.auth.router import router as auth_router
from snapgram.posts.router import router as posts_router
from snapgram.users.router import router as users_router
from snapgram.follow.router import router as follow_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers WITHOUT the API prefix (it's added in main.py)
api_router.include_router(auth_router)              # Will be at /api/auth/...
api_router.include_router(posts_router)             # Will be at /api/posts/...
api_router.include_router(users_router)             # Will be at /api/users/...
api_router.include_router(follow_router)            # Will be at /api/users/{id}/follow
