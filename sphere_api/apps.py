from django.apps import AppConfig


class SphereApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sphere_api'
    verbose_name = 'WeatherSphere API'
