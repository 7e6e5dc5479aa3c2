from django.urls import include, path

urlpatterns = [
    path('', include('sphere_api.urls')),
]
