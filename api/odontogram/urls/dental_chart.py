from rest_framework.routers import SimpleRouter

from api.odontogram.views import DentalChartViewSet

app_name = 'dental-chart'

router = SimpleRouter()
router.register(r'', DentalChartViewSet, basename='dental-chart')

urlpatterns = router.urls
