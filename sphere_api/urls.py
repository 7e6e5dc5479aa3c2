from django.urls import path
from . import views

urlpatterns = [
    path('api/weather/', views.WeatherStateView.as_view(), name='weather-state'),
    path('api/weather/city/', views.CitySubmitView.as_view(), name='weather-city'),
    path('api/weather/location/', views.LocationView.as_view(), name='weather-location'),
    path('api/weather/location/denied/', views.LocationDeniedView.as_view(), name='weather-location-denied'),
    path('api/weather/unit/toggle/', views.UnitToggleView.as_view(), name='weather-unit-toggle'),
    path('api/health/', views.HealthCheckView.as_view(), name='health-check'),
]
