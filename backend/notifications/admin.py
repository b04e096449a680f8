from django.contrib import admin
from .models import EmailTemplateGroup, EmailTemplate, EmailSendHistory


@admin.register(EmailTemplateGroup)
class EmailTemplateGroupAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'created_at']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(EmailTemplate)
class EmailTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'group', 'subject', 'is_active', 'updated_at']
    list_filter = ['is_active', 'group']
    search_fields = ['name', 'slug', 'subject']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(EmailSendHistory)
class EmailSendHistoryAdmin(admin.ModelAdmin):
    list_display = ['to_email', 'subject', 'status', 'template', 'sent_by', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['to_email', 'subject']
    readonly_fields = ['created_at']
