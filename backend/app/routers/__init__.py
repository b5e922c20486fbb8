from app.routers import attempts, auth, health, quizzes

__all__ = [
    "attempts",
    "auth",
    "health",
    "quizzes",
]
