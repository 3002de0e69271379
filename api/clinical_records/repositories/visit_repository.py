from common.repositories.base_repository import BaseRepository
from api.clinical_records.models import Visit, VisitStatus
from api.utils.exceptions import InvalidState


class VisitRepository(BaseRepository[Visit]):
    """Repositorio para operaciones de acceso a datos de Visitas"""
    model = Visit

    @classmethod
    def get_queryset(cls):
        return Visit.objects.select_related('patient', 'appointment', 'treatment_plan')

    @staticmethod
    def link_treatment_plan(visit, plan):
        """El enlace al plan se escribe una sola vez"""
        if visit.treatment_plan_id and visit.treatment_plan_id != plan.id:
            raise InvalidState(
                f"La visita {visit.id} ya está enlazada al plan {visit.treatment_plan_id}"
            )
        visit.treatment_plan = plan
        visit.save()
        return visit

    @staticmethod
    def add_procedure(visit, billing_line, dental_work, snapshot):
        """Agrega un procedimiento realizado durante la visita"""
        visit.procedures.append(billing_line)
        visit.dental_work.append(dental_work)
        visit.dental_chart_snapshot = snapshot
        visit.save()
        return visit

    @staticmethod
    def finalize(visit, snapshot):
        """Cierra la visita con el odontograma final"""
        visit.dental_chart_snapshot = snapshot
        visit.status = VisitStatus.COMPLETED
        visit.save()
        return visit
