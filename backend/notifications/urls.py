from django.urls import path
from .views import email_templates, send_templated_email, email_history

urlpatterns = [
    path('templates', email_templates, name='email-templates'),
    path('send', send_templated_email, name='email-send'),
    path('history', email_history, name='email-history'),
]
