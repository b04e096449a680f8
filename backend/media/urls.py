from django.urls import path
from .views import (
    upload_image, variant_gallery,
    variant_image_list_create, variant_image_reorder, variant_image_delete,
    shared_media_list_create, variant_shared_media_link,
)

urlpatterns = [
    path('upload/', upload_image, name='media-upload'),

    # Variant galleries
    path('galleries/<str:filename>/', variant_gallery, name='variant-gallery'),
    path('variant-images/<str:variant_key>/', variant_image_list_create, name='variant-image-list-create'),
    path('variant-images/<str:variant_key>/reorder/', variant_image_reorder, name='variant-image-reorder'),
    path('variant-image/<int:pk>/', variant_image_delete, name='variant-image-delete'),
    path('shared-media/', shared_media_list_create, name='shared-media-list-create'),
    path('shared-media/link/<str:variant_key>/', variant_shared_media_link, name='variant-shared-media-link'),
]
