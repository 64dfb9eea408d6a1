from .analysis import router as analysis_router
from .misc import router as misc_router

__all__ = ["analysis_router", "misc_router"]
