from rest_framework import serializers
from .models import EmailTemplateGroup, EmailTemplate, EmailSendHistory


class EmailTemplateGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailTemplateGroup
        fields = ['id', 'name', 'slug', 'description', 'created_at', 'updated_at']


class EmailTemplateSerializer(serializers.ModelSerializer):
    group_id = serializers.PrimaryKeyRelatedField(
        queryset=EmailTemplateGroup.objects.all(),
        source='group',
        required=False,
        allow_null=True
    )
    # Admin screens send the template text as `bodyContent`
    bodyContent = serializers.CharField(source='body', required=False, allow_blank=True, write_only=True)

    class Meta:
        model = EmailTemplate
        fields = ['id', 'name', 'slug', 'subject', 'body', 'bodyContent', 'group_id', 'variables', 'is_active',
                  'created_at', 'updated_at']
        extra_kwargs = {'body': {'read_only': True}}


class EmailSendHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailSendHistory
        fields = ['id', 'template', 'to_email', 'to_name', 'subject', 'status', 'error_message', 'created_at']


class SendEmailSerializer(serializers.Serializer):
    to_email = serializers.EmailField()
    to_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    subject = serializers.CharField()
    bodyContent = serializers.CharField()
    template_id = serializers.PrimaryKeyRelatedField(queryset=EmailTemplate.objects.all(), required=False,
                                                     allow_null=True)
    variables = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False, default=dict)
