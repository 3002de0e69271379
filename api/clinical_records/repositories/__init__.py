from .visit_repository import VisitRepository

__all__ = [
    'VisitRepository',
]
