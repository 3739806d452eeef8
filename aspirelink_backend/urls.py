"""
URL configuration for aspirelink_backend project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from core.schema import AspireLinkSchemaView


def api_root(_request):
    return JsonResponse({
        'status': 'ok',
        'message': 'AspireLink backend is running',
        'schema': '/api/schema/',
    })


urlpatterns = [
    path('', api_root, name='api_root'),
    path('admin/', admin.site.urls),
    path('api/schema/', AspireLinkSchemaView.as_view(), name='api-schema'),
    path('api/', include('core.urls')),
]
