from django.urls import path

from .views import RateImportView

urlpatterns = [
    path('rates/import', RateImportView.as_view(), name='rate-import'),
]
