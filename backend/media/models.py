from django.db import models


class VariantImage(models.Model):
    """Picture in the gallery of one image variant"""
    variant_key = models.CharField(max_length=255, db_index=True)  # variant filename without extension
    image_url = models.URLField(max_length=500)
    display_order = models.IntegerField(default=0)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.variant_key} #{self.display_order}"

    class Meta:
        db_table = 'variant_images'
        ordering = ['variant_key', 'display_order']


class SharedMedia(models.Model):
    """Picture reusable across variant galleries (lifestyle shots, packaging...)"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    image_url = models.URLField(max_length=500)
    thumbnail_url = models.URLField(max_length=500, blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)
    file_size_bytes = models.IntegerField(null=True, blank=True)
    width = models.IntegerField(null=True, blank=True)
    height = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'shared_media'
        verbose_name_plural = 'shared media'
        ordering = ['-created_at']


class VariantSharedMedia(models.Model):
    variant_key = models.CharField(max_length=255, db_index=True)
    shared_media = models.ForeignKey(SharedMedia, on_delete=models.CASCADE, related_name='variant_links')
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.variant_key} -> {self.shared_media_id}"

    class Meta:
        db_table = 'variant_shared_media'
        unique_together = [['variant_key', 'shared_media']]
        ordering = ['variant_key', 'display_order']
