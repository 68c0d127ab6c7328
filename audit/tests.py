from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APITestCase

from .models import AuditLog
from .utils import get_client_ip, record_audit_log

User = get_user_model()


class RecordAuditLogTest(TestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.admin = User.objects.create_user(username='admin', password='testpass123', is_staff=True)

    def test_first_forwarded_hop_wins(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1', REMOTE_ADDR='10.0.0.2')
        self.assertEqual(get_client_ip(request), '203.0.113.7')

    def test_remote_addr_fallback(self):
        request = self.factory.get('/', REMOTE_ADDR='198.51.100.4')
        self.assertEqual(get_client_ip(request), '198.51.100.4')

    def test_record(self):
        request = self.factory.post('/', REMOTE_ADDR='198.51.100.4')
        request.user = self.admin

        entry = record_audit_log(request, 'csv_import_start', 'import_job', 'abc', {'filename': 'a.csv'})

        self.assertEqual(entry.admin, self.admin)
        self.assertEqual(entry.ip, '198.51.100.4')
        self.assertEqual(entry.target_id, 'abc')
        self.assertEqual(entry.metadata_json, {'filename': 'a.csv'})

    def test_anonymous_request_has_no_admin(self):
        request = self.factory.post('/')
        entry = record_audit_log(request, 'project_delete', 'project', 5)
        self.assertIsNone(entry.admin)
        self.assertEqual(entry.target_id, '5')
        self.assertEqual(entry.metadata_json, {})


class AuditLogViewSetTest(APITestCase):

    def setUp(self):
        self.admin = User.objects.create_user(username='admin', password='testpass123', is_staff=True)
        self.other = User.objects.create_user(username='other', password='testpass123', is_staff=True)
        AuditLog.objects.create(admin=self.admin, action_type='csv_import_start', target_type='import_job', target_id='1')
        AuditLog.objects.create(admin=self.admin, action_type='csv_import_undo', target_type='import_job', target_id='1')
        AuditLog.objects.create(admin=self.other, action_type='project_delete', target_type='project', target_id='9')
        self.client.force_authenticate(user=self.admin)

    def test_list(self):
        response = self.client.get(reverse('audit-log-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 3)
        row = response.data['data'][0]
        for key in ['adminId', 'adminUsername', 'actionType', 'targetType', 'targetId', 'ip', 'metadataJson', 'createdAt']:
            self.assertIn(key, row)

    def test_filters(self):
        response = self.client.get(reverse('audit-log-list'), {'userId': self.other.pk})
        self.assertEqual([row['actionType'] for row in response.data['data']], ['project_delete'])

        response = self.client.get(reverse('audit-log-list'), {'actionType': 'csv_import_undo'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['adminUsername'], 'admin')

    def test_read_only(self):
        response = self.client.post(reverse('audit-log-list'), {'action_type': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
