import logging

from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from api.clinical_records.serializers import ConsultationResultSerializer, ConsultationSerializer
from api.clinical_records.services import ConsultationService
from api.permissions import EsOdontologoDeClinica

logger = logging.getLogger(__name__)


class ConsultationView(APIView):
    """Atiende una cita: visita, odontograma, plan y cita de control en una sola transacción"""
    permission_classes = [EsOdontologoDeClinica]
    service_class = ConsultationService

    @swagger_auto_schema(
        request_body=ConsultationSerializer,
        responses={201: ConsultationResultSerializer}
    )
    def post(self, request, appointment_id):
        serializer = ConsultationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service_class().consult(
            appointment_id,
            doctor_id=request.user.doctor_id,
            clinic_id=request.user.clinic_id,
            payload=serializer.validated_data,
        )
        logger.info(
            f"Consulta registrada para la cita {appointment_id}",
            extra={'doctor_id': request.user.doctor_id}
        )

        data = ConsultationResultSerializer(result).data
        data['message'] = 'Consulta registrada correctamente'
        return Response(data, status=status.HTTP_201_CREATED)
