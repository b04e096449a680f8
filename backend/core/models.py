from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with storefront roles"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    roles = models.JSONField(default=list, blank=True)  # e.g. ["admin"]
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin(self):
        """Admins either carry the 'admin' role or are Django superusers/staff"""
        return 'admin' in (self.roles or []) or self.is_superuser or self.is_staff

    class Meta:
        db_table = 'users'


class SiteSetting(models.Model):
    """Key/value site-wide settings (e.g. the active site style)"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'site_settings'
