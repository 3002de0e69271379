import logging

from drf_yasg.utils import swagger_auto_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from api.odontogram.serializers import (
    AddProcedureSerializer,
    ConflictCheckSerializer,
    ConflictResultSerializer,
    ToothStatusSerializer,
)
from api.odontogram.services import DentalChartService
from api.permissions import EsOdontologoDeClinica

logger = logging.getLogger(__name__)


class DentalChartViewSet(viewsets.ViewSet):
    """
    Odontograma del paciente

    retrieve: odontograma completo ordenado por diente
    tooth: historial de un diente
    check_conflict: verifica si una superficie ya fue tratada (sin efectos)
    add_procedure: registra un procedimiento realizado en una visita
    tooth_status: estado general de un diente ya registrado
    comparison: odontograma frente a un plan de tratamiento
    """
    permission_classes = [EsOdontologoDeClinica]
    lookup_field = 'patient_id'
    lookup_value_regex = '[0-9a-fA-F-]+'

    service_class = DentalChartService

    def get_service(self):
        return self.service_class()

    def retrieve(self, request, patient_id=None):
        chart = self.get_service().get_chart(patient_id, clinic_id=request.user.clinic_id)
        return Response({'patient_id': patient_id, 'dental_chart': chart})

    @action(detail=True, methods=['get'], url_path=r'tooth/(?P<tooth_number>\d+)')
    def tooth(self, request, patient_id=None, tooth_number=None):
        history = self.get_service().get_tooth_history(
            patient_id, tooth_number, clinic_id=request.user.clinic_id
        )
        return Response(history)

    @swagger_auto_schema(request_body=ToothStatusSerializer)
    @action(detail=True, methods=['patch'], url_path=r'tooth/(?P<tooth_number>\d+)/status')
    def tooth_status(self, request, patient_id=None, tooth_number=None):
        serializer = ToothStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tooth = self.get_service().update_tooth_status(
            patient_id,
            tooth_number,
            serializer.validated_data['status'],
            notes=serializer.validated_data.get('notes'),
            doctor_id=request.user.doctor_id,
            clinic_id=request.user.clinic_id,
        )
        logger.info(
            f"Estado del diente {tooth_number} actualizado a '{tooth['current_status']}'",
            extra={'patient_id': patient_id, 'doctor_id': request.user.doctor_id}
        )
        return Response({'message': 'Estado del diente actualizado', **tooth})

    @swagger_auto_schema(
        request_body=ConflictCheckSerializer,
        responses={200: ConflictResultSerializer}
    )
    @action(detail=True, methods=['post'], url_path='check-conflict')
    def check_conflict(self, request, patient_id=None):
        serializer = ConflictCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_service().check_conflict(
            patient_id,
            serializer.validated_data['tooth_number'],
            serializer.validated_data['surface'],
            clinic_id=request.user.clinic_id,
        )
        return Response(result)

    @swagger_auto_schema(request_body=AddProcedureSerializer)
    @action(detail=True, methods=['post'], url_path=r'visit/(?P<visit_id>[0-9a-fA-F-]+)/procedure')
    def add_procedure(self, request, patient_id=None, visit_id=None):
        serializer = AddProcedureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self.get_service().add_procedure(
            patient_id=patient_id,
            visit_id=visit_id,
            doctor_id=request.user.doctor_id,
            tooth_number=data['tooth_number'],
            procedure_name=data['procedure_name'],
            surface=data['surface'],
            notes=data.get('notes', ''),
            fee=data.get('fee', 0),
            treatment_plan_id=data.get('treatment_plan_id'),
            clinic_id=request.user.clinic_id,
        )

        logger.info(
            f"Procedimiento '{data['procedure_name']}' registrado en diente {data['tooth_number']}",
            extra={'patient_id': patient_id, 'visit_id': visit_id, 'doctor_id': request.user.doctor_id}
        )
        plan = result['treatment_plan']
        return Response(
            {
                'message': 'Procedimiento registrado',
                'visit_id': str(result['visit'].id),
                'total_amount': str(result['visit'].total_amount),
                'dental_chart': result['dental_chart'],
                'treatment_plan_status': plan.status if plan else None,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['get'], url_path=r'comparison/(?P<plan_id>[0-9a-fA-F-]+)')
    def comparison(self, request, patient_id=None, plan_id=None):
        return Response(self.get_service().compare_with_plan(
            patient_id, plan_id, clinic_id=request.user.clinic_id
        ))
