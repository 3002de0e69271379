import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from api.odontogram.serializers import (
    AddStageSerializer,
    CancelPlanSerializer,
    FinishPlanSerializer,
    RemoveProcedureSerializer,
    StageCompletionSerializer,
    TreatmentPlanCreateSerializer,
    TreatmentPlanListSerializer,
    TreatmentPlanSerializer,
    UpdateProceduresSerializer,
)
from api.odontogram.services import TreatmentPlanService
from api.permissions import EsOdontologoDeClinica

logger = logging.getLogger(__name__)


class TreatmentPlanViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           viewsets.GenericViewSet):
    """
    ViewSet para gestionar Planes de Tratamiento

    list: planes filtrados por ?patient_id= y ?status=
    retrieve: detalle de un plan
    start: crea un plan para el paciente (el id de la URL es el del paciente)
    destroy: borra un plan sin procedimientos completados
    """
    permission_classes = [EsOdontologoDeClinica]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status']
    lookup_value_regex = '[0-9a-fA-F-]+'

    service_class = TreatmentPlanService

    def get_service(self):
        return self.service_class()

    def get_queryset(self):
        return self.get_service().list_plans(
            patient_id=self.request.query_params.get('patient_id'),
            clinic_id=getattr(self.request.user, 'clinic_id', None),
        )

    def _plan_id(self):
        """Id del plan de la URL; 404 si no es de la clínica del usuario"""
        return self.get_object().id

    def get_serializer_class(self):
        if self.action == 'list':
            return TreatmentPlanListSerializer
        return TreatmentPlanSerializer

    def _plan_response(self, plan, message, http_status=status.HTTP_200_OK):
        data = TreatmentPlanSerializer(plan).data
        data['message'] = message
        return Response(data, status=http_status)

    @swagger_auto_schema(
        request_body=TreatmentPlanCreateSerializer,
        responses={201: TreatmentPlanSerializer}
    )
    @action(detail=True, methods=['post'], url_path='start')
    def start(self, request, pk=None):
        serializer = TreatmentPlanCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        plan = self.get_service().start_plan(
            patient_id=pk,
            clinic_id=request.user.clinic_id,
            doctor_id=request.user.doctor_id,
            plan_name=data['plan_name'],
            teeth=data.get('teeth'),
            stages=data.get('stages'),
            description=data.get('description', ''),
        )
        logger.info(
            f"Plan de tratamiento {plan.id} creado",
            extra={'patient_id': pk, 'doctor_id': request.user.doctor_id}
        )
        return self._plan_response(plan, 'Plan de tratamiento creado', status.HTTP_201_CREATED)

    @swagger_auto_schema(request_body=AddStageSerializer, responses={201: TreatmentPlanSerializer})
    @action(detail=True, methods=['post'], url_path='stage')
    def add_stage(self, request, pk=None):
        serializer = AddStageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        plan = self.get_service().add_stage(
            self._plan_id(),
            stage_name=data['stage_name'],
            description=data.get('description', ''),
            scheduled_date=data.get('scheduled_date'),
            tooth_surface_procedures=data.get('tooth_surface_procedures'),
        )
        return self._plan_response(plan, 'Etapa agregada', status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'stage/(?P<stage_number>\d+)')
    def remove_stage(self, request, pk=None, stage_number=None):
        plan = self.get_service().remove_stage(self._plan_id(), int(stage_number))
        return self._plan_response(plan, 'Etapa eliminada')

    @action(detail=True, methods=['post'], url_path=r'stage/(?P<stage_number>\d+)/start')
    def start_stage(self, request, pk=None, stage_number=None):
        plan = self.get_service().start_stage(self._plan_id(), int(stage_number))
        return self._plan_response(plan, 'Etapa iniciada')

    @swagger_auto_schema(request_body=StageCompletionSerializer, responses={200: TreatmentPlanSerializer})
    @action(detail=True, methods=['post'], url_path=r'stage/(?P<stage_number>\d+)/complete')
    def complete_stage(self, request, pk=None, stage_number=None):
        serializer = StageCompletionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        plan = self.get_service().update_stage_completion(
            self._plan_id(),
            int(stage_number),
            visit_id=serializer.validated_data.get('visit_id'),
            doctor_id=request.user.doctor_id,
        )
        return self._plan_response(plan, 'Etapa completada')

    @swagger_auto_schema(request_body=UpdateProceduresSerializer, responses={200: TreatmentPlanSerializer})
    @action(detail=True, methods=['patch'], url_path='procedures')
    def update_procedures(self, request, pk=None):
        serializer = UpdateProceduresSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        plan, completed = self.get_service().update_specific_procedures(
            self._plan_id(),
            serializer.validated_data['completed_procedures'],
            visit_id=serializer.validated_data.get('visit_id'),
            doctor_id=request.user.doctor_id,
        )
        return self._plan_response(plan, f'{len(completed)} procedimientos completados')

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('procedure_name', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('surface', openapi.IN_QUERY, type=openapi.TYPE_STRING),
        ]
    )
    @action(detail=True, methods=['delete'], url_path=r'procedure/(?P<tooth_number>\d+)')
    def remove_procedure(self, request, pk=None, tooth_number=None):
        source = request.data if request.data else request.query_params
        serializer = RemoveProcedureSerializer(data={
            'procedure_name': source.get('procedure_name'),
            'surface': source.get('surface') or 'entire',
        })
        serializer.is_valid(raise_exception=True)

        plan = self.get_service().remove_procedure(
            self._plan_id(),
            int(tooth_number),
            serializer.validated_data['procedure_name'],
            serializer.validated_data['surface'],
        )
        return self._plan_response(plan, 'Procedimiento eliminado del plan')

    @swagger_auto_schema(request_body=FinishPlanSerializer, responses={200: TreatmentPlanSerializer})
    @action(detail=True, methods=['post'], url_path='finish')
    def finish(self, request, pk=None):
        serializer = FinishPlanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        plan = self.get_service().finish(
            self._plan_id(),
            doctor_id=request.user.doctor_id,
            visit_id=serializer.validated_data.get('visit_id'),
        )
        return self._plan_response(plan, 'Plan de tratamiento finalizado')

    @swagger_auto_schema(request_body=CancelPlanSerializer, responses={200: TreatmentPlanSerializer})
    @action(detail=True, methods=['post'], url_path='cancel')
    def cancel(self, request, pk=None):
        serializer = CancelPlanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        plan = self.get_service().cancel(
            self._plan_id(),
            reason=serializer.validated_data.get('reason', ''),
            doctor_id=request.user.doctor_id,
        )
        return self._plan_response(plan, 'Plan de tratamiento cancelado')

    def destroy(self, request, pk=None):
        self.get_service().delete_plan(self._plan_id())
        logger.info(f"Plan {pk} eliminado", extra={'doctor_id': request.user.doctor_id})
        return Response({'message': 'Plan de tratamiento eliminado', 'id': pk}, status=status.HTTP_200_OK)
