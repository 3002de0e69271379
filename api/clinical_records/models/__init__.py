from .visit import Visit, VisitStatus

__all__ = [
    'Visit',
    'VisitStatus',
]
