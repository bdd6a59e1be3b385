"""API route modules."""
from api.routes import auth, categories, purchases, questions, results, sections, submissions, tests, uploads

__all__ = [
    "auth",
    "categories",
    "purchases",
    "questions",
    "results",
    "sections",
    "submissions",
    "tests",
    "uploads",
]
