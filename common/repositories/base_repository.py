from typing import TypeVar, Generic, List, Optional, Type
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db.models import Model, QuerySet

T = TypeVar('T', bound=Model)


class BaseRepository(Generic[T]):
    """
    Acceso a datos común para los repositorios de cada app.
    Las subclases solo definen `model`.
    """
    model: Type[T] = None

    @classmethod
    def get_queryset(cls) -> QuerySet:
        return cls.model.objects.all()

    @classmethod
    def get_by_id(cls, pk) -> Optional[T]:
        try:
            return cls.get_queryset().get(pk=pk)
        except (ObjectDoesNotExist, ValidationError, ValueError):
            return None

    @classmethod
    def get_for_update(cls, pk) -> Optional[T]:
        """Bloquea la fila hasta el fin de la transacción en curso"""
        try:
            return cls.get_queryset().select_for_update(of=('self',)).get(pk=pk)
        except (ObjectDoesNotExist, ValidationError, ValueError):
            return None

    @classmethod
    def filter(cls, **filters) -> List[T]:
        return list(cls.get_queryset().filter(**filters))

    @classmethod
    def create(cls, **kwargs) -> T:
        instance = cls.model(**kwargs)
        instance.full_clean()
        instance.save()
        return instance

    @classmethod
    def save(cls, instance: T) -> T:
        instance.full_clean()
        instance.save()
        return instance
