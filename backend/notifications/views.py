from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
import logging
from backend.core.errors import user_message_for
from backend.core.permissions import IsAdminRole
from .email_service import EmailDispatchError, build_html_email, render_template, send_email
from .models import EmailTemplateGroup, EmailTemplate, EmailSendHistory
from .serializers import (
    EmailTemplateGroupSerializer, EmailTemplateSerializer, EmailSendHistorySerializer, SendEmailSerializer,
)

logger = logging.getLogger(__name__)

GROUP_UPDATE_FIELDS = ('name', 'description')
TEMPLATE_UPDATE_FIELDS = ('name', 'subject', 'bodyContent', 'group_id', 'variables', 'is_active')


@api_view(['GET', 'POST', 'PUT', 'DELETE'])
@permission_classes([IsAdminRole])
def email_templates(request):
    """
    Email templates and their groups.

    POST/PUT/DELETE act on a group when `type` is "group", otherwise on a
    template. PUT and DELETE take the target `id` in the body.
    """
    if request.method == 'GET':
        return Response({
            'groups': EmailTemplateGroupSerializer(EmailTemplateGroup.objects.all(), many=True).data,
            'templates': EmailTemplateSerializer(EmailTemplate.objects.all(), many=True).data,
        })

    is_group = request.data.get('type') == 'group'
    model = EmailTemplateGroup if is_group else EmailTemplate
    serializer_class = EmailTemplateGroupSerializer if is_group else EmailTemplateSerializer

    if request.method == 'POST':
        if not request.data.get('name') or not request.data.get('slug'):
            return Response({'error': 'Name and slug are required'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = serializer_class(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        logger.info(f"Email {'group' if is_group else 'template'} '{serializer.data['slug']}' created")
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    object_id = request.data.get('id')
    if not object_id:
        return Response({'error': 'ID is required'}, status=status.HTTP_400_BAD_REQUEST)
    instance = model.objects.filter(pk=object_id).first()
    if instance is None:
        return Response({'error': 'Not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'PUT':
        allowed = GROUP_UPDATE_FIELDS if is_group else TEMPLATE_UPDATE_FIELDS
        updates = {key: value for key, value in request.data.items() if key in allowed}
        serializer = serializer_class(instance, data=updates, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response({'success': True})

    # DELETE; templates of a deleted group become ungrouped
    instance.delete()
    return Response({'success': True})


@api_view(['POST'])
@permission_classes([IsAdminRole])
def send_templated_email(request):
    """Render a template body with variables and send it to one recipient"""
    serializer = SendEmailSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    variables = data['variables']
    subject = render_template(data['subject'], variables)
    body = render_template(data['bodyContent'], variables)

    history = EmailSendHistory(
        template=data.get('template_id'),
        to_email=data['to_email'],
        to_name=data.get('to_name') or None,
        subject=subject,
        body=body,
        sent_by=request.user,
    )
    try:
        send_email(data['to_email'], subject, build_html_email(body))
    except EmailDispatchError as e:
        history.status = 'failed'
        history.error_message = str(e)
        history.save()
        category, title, message = user_message_for(e)
        return Response(
            {'error': str(e), 'category': category, 'title': title, 'message': message},
            status=status.HTTP_502_BAD_GATEWAY
        )

    history.status = 'sent'
    history.save()
    return Response({'success': True, 'history': EmailSendHistorySerializer(history).data})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def email_history(request):
    history = EmailSendHistory.objects.select_related('template')[:200]
    return Response(EmailSendHistorySerializer(history, many=True).data)
