"""Import every router."""

from planbot.handlers.planning.entries import entries_router
from planbot.handlers.planning.manager import manager_router
from planbot.handlers.planning.viewer import viewer_router
from planbot.handlers.start import start_router

routers_list = [
    start_router,
    manager_router,
    entries_router,
    viewer_router,
]

__all__ = [
    "routers_list",
]
