from rest_framework import serializers
from .models import VariantImage, SharedMedia, VariantSharedMedia
from .storage import BUCKETS


class VariantImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = VariantImage
        fields = ['id', 'variant_key', 'image_url', 'display_order', 'is_primary', 'created_at', 'updated_at']
        read_only_fields = ['variant_key', 'display_order', 'created_at', 'updated_at']


class SharedMediaSerializer(serializers.ModelSerializer):
    class Meta:
        model = SharedMedia
        fields = [
            'id', 'name', 'description', 'image_url', 'thumbnail_url', 'tags',
            'file_size_bytes', 'width', 'height', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class VariantSharedMediaSerializer(serializers.ModelSerializer):
    shared_media = SharedMediaSerializer(read_only=True)
    shared_media_id = serializers.PrimaryKeyRelatedField(
        queryset=SharedMedia.objects.all(),
        source='shared_media',
        write_only=True
    )

    class Meta:
        model = VariantSharedMedia
        fields = ['id', 'variant_key', 'shared_media', 'shared_media_id', 'display_order', 'created_at']
        read_only_fields = ['variant_key', 'created_at']


class UploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    bucket = serializers.ChoiceField(choices=BUCKETS)
    folder = serializers.CharField(required=False, allow_blank=True, default='')
    filename = serializers.CharField(required=False, allow_blank=True, default='')
    # Nullable so an omitted form field reads as None instead of False
    compress = serializers.BooleanField(required=False, allow_null=True, default=None)

    def validate_folder(self, value):
        if '..' in value.split('/'):
            raise serializers.ValidationError('Invalid folder')
        return value.strip('/')

    def validate_filename(self, value):
        if '/' in value or value in ('.', '..'):
            raise serializers.ValidationError('Invalid filename')
        return value
