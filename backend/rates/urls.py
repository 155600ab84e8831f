from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import RateCalculateView, RateMasterViewSet, RateSuggestionsView

router = DefaultRouter()
router.register(r'rates', RateMasterViewSet, basename='rates')

urlpatterns = [
    path('rates/calculate', RateCalculateView.as_view(), name='rate-calculate'),
    path('rates/suggestions', RateSuggestionsView.as_view(), name='rate-suggestions'),
    path('', include(router.urls)),
]
