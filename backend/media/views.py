from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
import logging
from backend.core.errors import user_message_for
from backend.core.permissions import IsAdminRole
from .gallery import add_variant_image, get_variant_images_by_filename, link_shared_media, reorder_variant_images
from .image_compression import ImageCompressionError, compress_image, generate_optimized_filename
from .models import VariantImage, SharedMedia
from .serializers import (
    VariantImageSerializer, SharedMediaSerializer, VariantSharedMediaSerializer, UploadSerializer,
)
from .storage import StorageError, get_storage

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAdminRole])
@parser_classes([MultiPartParser, FormParser])
def upload_image(request):
    """Compress an uploaded picture to WebP and store it in a bucket"""
    serializer = UploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    upload = serializer.validated_data['file']
    data = upload.read()
    content_type = upload.content_type or 'application/octet-stream'
    filename = serializer.validated_data['filename']

    if serializer.validated_data['compress'] is not False:
        try:
            data, content_type = compress_image(data)
        except ImageCompressionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        filename = filename or generate_optimized_filename(upload.name)
    else:
        filename = filename or upload.name

    folder = serializer.validated_data['folder']
    path = f"{folder}/{filename}" if folder else filename
    bucket = serializer.validated_data['bucket']
    try:
        url = get_storage().upload(bucket, path, data, content_type=content_type)
    except StorageError as e:
        logger.error(f"Image upload failed: {str(e)}")
        category, title, message = user_message_for(e)
        return Response(
            {'error': 'Upload failed', 'category': category, 'title': title, 'message': message},
            status=status.HTTP_502_BAD_GATEWAY
        )

    return Response({
        'url': url,
        'bucket': bucket,
        'path': path,
        'size': len(data),
        'content_type': content_type,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def variant_gallery(request, filename):
    """Gallery urls of a variant picture, primary first"""
    return Response({'filename': filename, 'images': get_variant_images_by_filename(filename)})


@api_view(['GET', 'POST'])
@permission_classes([IsAdminRole])
def variant_image_list_create(request, variant_key):
    if request.method == 'GET':
        images = VariantImage.objects.filter(variant_key=variant_key).order_by('display_order', 'id')
        return Response(VariantImageSerializer(images, many=True).data)

    serializer = VariantImageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    image = add_variant_image(
        variant_key,
        serializer.validated_data['image_url'],
        is_primary=serializer.validated_data.get('is_primary', False)
    )
    return Response(VariantImageSerializer(image).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def variant_image_reorder(request, variant_key):
    image_ids = request.data.get('image_ids')
    if not isinstance(image_ids, list) or not all(isinstance(image_id, int) for image_id in image_ids):
        return Response({'error': 'image_ids must be a list of ids'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        reorder_variant_images(variant_key, image_ids)
    except VariantImage.DoesNotExist as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return Response({'success': True})


@api_view(['DELETE'])
@permission_classes([IsAdminRole])
def variant_image_delete(request, pk):
    image = get_object_or_404(VariantImage, pk=pk)
    image.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminRole])
def shared_media_list_create(request):
    if request.method == 'GET':
        return Response(SharedMediaSerializer(SharedMedia.objects.all(), many=True).data)

    serializer = SharedMediaSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def variant_shared_media_link(request, variant_key):
    """Attach a shared picture to a variant gallery"""
    serializer = VariantSharedMediaSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    link = link_shared_media(
        variant_key,
        serializer.validated_data['shared_media'],
        display_order=serializer.validated_data.get('display_order')
    )
    return Response(VariantSharedMediaSerializer(link).data, status=status.HTTP_201_CREATED)
