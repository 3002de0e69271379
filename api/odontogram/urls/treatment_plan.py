from rest_framework.routers import SimpleRouter

from api.odontogram.views import TreatmentPlanViewSet

app_name = 'treatment-plan'

router = SimpleRouter()
router.register(r'', TreatmentPlanViewSet, basename='treatment-plan')

urlpatterns = router.urls
