from fastapi import APIRouter
from .auth import router as auth_router
from .profiles import router as profiles_router
from .bookmarks import router as bookmarks_router
from .stories import router as stories_router
from .manna import router as manna_router
from .notes import router as notes_router
from .media import router as media_router

router = APIRouter()
router.include_router(auth_router, prefix='/auth', tags=['auth'])
router.include_router(profiles_router, prefix='/profiles', tags=['profiles'])
router.include_router(bookmarks_router, prefix='/bookmarks', tags=['bookmarks'])
router.include_router(stories_router, prefix='/stories', tags=['stories'])
router.include_router(manna_router, prefix='/manna', tags=['manna'])
router.include_router(notes_router, prefix='/notes', tags=['notes'])
router.include_router(media_router, prefix='/media', tags=['media'])
