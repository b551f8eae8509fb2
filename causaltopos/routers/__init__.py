from .graph_router import router as graph_router

__all__ = ["graph_router"]
