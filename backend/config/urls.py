"""
URL configuration for backend project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve
from backend.core.views import site_style

admin.site.site_header = "Maison Jove Admin Panel"
admin.site.site_title = "Maison Jove Admin Portal"
admin.site.index_title = "Welcome to the Maison Jove Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.catalog.urls')),
    path('api/v1/customization/', include('backend.customization.urls')),
    path('api/v1/media/', include('backend.media.urls')),
    path('api/v1/', include('backend.orders.urls')),
    path('api/admin/site-style', site_style, name='site-style'),
    path('api/admin/email/', include('backend.notifications.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
