from django.db import models


class EmailTemplateGroup(models.Model):
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'email_template_groups'
        ordering = ['created_at', 'id']


class EmailTemplate(models.Model):
    """Reusable email with `{{variable}}` placeholders"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    subject = models.CharField(max_length=500, blank=True, default='')
    body = models.TextField(blank=True, default='')
    group = models.ForeignKey(EmailTemplateGroup, on_delete=models.SET_NULL, null=True, blank=True,
                              related_name='templates')
    variables = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'email_templates'
        ordering = ['created_at', 'id']


class EmailSendHistory(models.Model):
    STATUS_CHOICES = [
        ('sent', 'Sent'),
        ('failed', 'Failed'),
    ]

    template = models.ForeignKey(EmailTemplate, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name='send_history')
    to_email = models.EmailField()
    to_name = models.CharField(max_length=200, blank=True, null=True)
    subject = models.CharField(max_length=500)
    body = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    error_message = models.TextField(blank=True, null=True)
    sent_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='sent_emails')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.to_email}: {self.subject} ({self.status})"

    class Meta:
        db_table = 'email_send_history'
        ordering = ['-created_at']
