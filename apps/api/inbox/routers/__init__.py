"""API routers."""

from inbox.routers.conversations import router as conversations_router
