"""
Test suite for the notifications module
Tests: template rendering, the send-email function client and the admin email API
"""
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from unittest import mock
import requests
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications.email_service import (
    EmailDispatchError, build_html_email, render_template, send_email,
)
from backend.notifications.models import EmailTemplateGroup, EmailTemplate, EmailSendHistory


class RenderTemplateTests(SimpleTestCase):
    """Test placeholder substitution"""

    def test_substitutes_variables(self):
        text = 'Hello {{name}}, your {{ item }} is ready.'
        self.assertEqual(render_template(text, {'name': 'Ana', 'item': 'necklace'}),
                         'Hello Ana, your necklace is ready.')

    def test_keys_may_carry_braces(self):
        self.assertEqual(render_template('Hi {{name}}', {'{{name}}': 'Ana'}), 'Hi Ana')

    def test_unknown_placeholders_are_kept(self):
        self.assertEqual(render_template('Order {{order_id}}', {}), 'Order {{order_id}}')

    def test_none_renders_empty(self):
        self.assertEqual(render_template('Note: {{note}}', {'note': None}), 'Note: ')

    def test_conditional_blocks(self):
        text = 'Thanks!{{#if tracking}} Track it: {{tracking}}{{/if}}'
        self.assertEqual(render_template(text, {'tracking': 'ZX1'}), 'Thanks! Track it: ZX1')
        self.assertEqual(render_template(text, {'tracking': '  '}), 'Thanks!')
        self.assertEqual(render_template(text, {}), 'Thanks!')


class BuildHtmlEmailTests(SimpleTestCase):

    def test_plain_text_is_wrapped(self):
        html = build_html_email('Line one\nLine two')
        self.assertIn('MAISON JOVE', html)
        self.assertIn('Line one<br>Line two', html)

    def test_html_markup_is_kept(self):
        self.assertIn('<strong>Ready</strong>', build_html_email('<strong>Ready</strong>'))

    def test_full_document_passes_through(self):
        document = '<!DOCTYPE html><html><body>Hi</body></html>'
        self.assertEqual(build_html_email(document), document)


@mock.patch('backend.notifications.email_service.EMAIL_FUNCTION_KEY', 'function-key')
@mock.patch('backend.notifications.email_service.EMAIL_FUNCTION_URL', 'https://functions.test/api/send-email')
class SendEmailTests(SimpleTestCase):
    """Test the send-email function client"""

    def response(self, status_code, payload=None):
        response = mock.Mock(status_code=status_code, text='raw error')
        response.json.return_value = payload or {}
        return response

    @mock.patch('backend.notifications.email_service.requests.post')
    def test_posts_payload(self, mocked_post):
        mocked_post.return_value = self.response(200, {'id': 'msg-1'})

        result = send_email('ana@example.com', 'Your order', '<p>Hi</p>', from_email='shop@example.com')

        self.assertEqual(result, {'id': 'msg-1'})
        args, kwargs = mocked_post.call_args
        self.assertEqual(args[0], 'https://functions.test/api/send-email')
        self.assertEqual(kwargs['json'], {
            'to': 'ana@example.com', 'from': 'shop@example.com', 'subject': 'Your order', 'html': '<p>Hi</p>',
        })
        self.assertEqual(kwargs['headers']['x-functions-key'], 'function-key')
        self.assertIn('timeout', kwargs)

    @mock.patch('backend.notifications.email_service.requests.post')
    def test_rejected_message(self, mocked_post):
        mocked_post.return_value = self.response(400, {'error': 'Invalid recipient'})

        with self.assertRaises(EmailDispatchError) as context:
            send_email('bad', 'Subject', 'Body')
        self.assertEqual(str(context.exception), 'Invalid recipient')

    @mock.patch('backend.notifications.email_service.requests.post')
    def test_unreachable_function(self, mocked_post):
        mocked_post.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(EmailDispatchError):
            send_email('ana@example.com', 'Subject', 'Body')

    def test_unconfigured_function(self):
        with mock.patch('backend.notifications.email_service.EMAIL_FUNCTION_URL', ''):
            with self.assertRaises(EmailDispatchError):
                send_email('ana@example.com', 'Subject', 'Body')


class EmailTemplateAPITests(TestCase):
    """Test the template and group admin endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.url = '/api/admin/email/templates'

    def test_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_create_group_and_template(self):
        response = self.client.post(self.url, {
            'type': 'group', 'name': 'Orders', 'slug': 'orders',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        group_id = response.data['id']

        response = self.client.post(self.url, {
            'name': 'Shipped', 'slug': 'shipped', 'subject': 'Your {{item}} shipped',
            'bodyContent': 'Hi {{name}}', 'group_id': group_id, 'variables': ['name', 'item'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['body'], 'Hi {{name}}')

        response = self.client.get(self.url)
        self.assertEqual([group['slug'] for group in response.data['groups']], ['orders'])
        self.assertEqual(response.data['templates'][0]['group_id'], group_id)

    def test_create_requires_name_and_slug(self):
        response = self.client.post(self.url, {'name': 'No slug'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Name and slug are required')

    def test_update_template(self):
        template = EmailTemplate.objects.create(name='Welcome', slug='welcome', subject='Hi', body='Old')

        response = self.client.put(self.url, {
            'id': template.id, 'subject': 'Welcome {{name}}', 'bodyContent': 'New', 'slug': 'ignored',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True})
        template.refresh_from_db()
        self.assertEqual(template.subject, 'Welcome {{name}}')
        self.assertEqual(template.body, 'New')
        self.assertEqual(template.slug, 'welcome')

    def test_update_and_delete_need_existing_id(self):
        response = self.client.put(self.url, {'subject': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'ID is required')

        response = self.client.delete(self.url, {'id': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_deleting_group_keeps_templates(self):
        group = EmailTemplateGroup.objects.create(name='Marketing', slug='marketing')
        template = EmailTemplate.objects.create(name='Sale', slug='sale', group=group)

        response = self.client.delete(self.url, {'type': 'group', 'id': group.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        template.refresh_from_db()
        self.assertIsNone(template.group)


class SendTemplatedEmailAPITests(TestCase):
    """Test sending an email and recording history"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.template = EmailTemplate.objects.create(name='Shipped', slug='shipped')
        self.payload = {
            'to_email': 'ana@example.com',
            'to_name': 'Ana',
            'subject': 'Your {{item}} shipped',
            'bodyContent': 'Hi {{name}}{{#if tracking}}, tracking {{tracking}}{{/if}}',
            'template_id': self.template.id,
            'variables': {'name': 'Ana', 'item': 'necklace', 'tracking': ''},
        }

    @mock.patch('backend.notifications.views.send_email', return_value={'id': 'msg-1'})
    def test_send_renders_and_records(self, mocked_send):
        response = self.client.post('/api/admin/email/send', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        to, subject, html = mocked_send.call_args[0]
        self.assertEqual((to, subject), ('ana@example.com', 'Your necklace shipped'))
        self.assertIn('Hi Ana', html)
        self.assertNotIn('tracking', html)

        history = EmailSendHistory.objects.get()
        self.assertEqual(history.status, 'sent')
        self.assertEqual(history.template, self.template)
        self.assertEqual(history.sent_by, self.admin)

    @mock.patch('backend.notifications.views.send_email',
                side_effect=EmailDispatchError('Email service unreachable: connection refused'))
    def test_send_failure_is_recorded(self, mocked_send):
        response = self.client.post('/api/admin/email/send', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['category'], 'network')
        history = EmailSendHistory.objects.get()
        self.assertEqual(history.status, 'failed')
        self.assertIn('unreachable', history.error_message)

    def test_invalid_payload(self):
        response = self.client.post('/api/admin/email/send', {'to_email': 'not-an-email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_history(self):
        EmailSendHistory.objects.create(to_email='a@example.com', subject='One', body='x', status='sent')
        EmailSendHistory.objects.create(to_email='b@example.com', subject='Two', body='y', status='failed')

        response = self.client.get('/api/admin/email/history')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
