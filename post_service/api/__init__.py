from .routes.posts import router as posts_router


__all__ = [
    # routes/posts.py
    "posts_router",
]
