"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- auth.py: /api/v1/auth/* (OAuth sign-in, token refresh, current user)
- books.py: /api/v1/books/* (share, list, edit, delete)
- votes.py: /api/v1/books/{id}/votes
- comments.py: /api/v1/books/{id}/comments and /api/v1/comments/{id}
- comment_likes.py: /api/v1/comments/{id}/likes
- reviews.py: /api/v1/books/{id}/reviews, /rating and /api/v1/reviews/*
- genres.py: /api/v1/genres/
- users.py: /api/v1/users/*

Each router is imported and registered in main.py.
"""

from booknest.routers.auth import router as auth_router
from booknest.routers.books import router as books_router
from booknest.routers.comment_likes import router as comment_likes_router
from booknest.routers.comments import router as comments_router
from booknest.routers.genres import router as genres_router
from booknest.routers.reviews import router as reviews_router
from booknest.routers.users import router as users_router
from booknest.routers.votes import router as votes_router

__all__ = [
    "auth_router",
    "books_router",
    "comment_likes_router",
    "comments_router",
    "genres_router",
    "reviews_router",
    "users_router",
    "votes_router",
]
