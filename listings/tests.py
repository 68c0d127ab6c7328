"""
Tests for the listings app: soft delete models and the admin API.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog

from .exports import rows_to_csv
from .models import Bank, City, Developer, District, Project

User = get_user_model()


class ListingsDataMixin:

    def create_listings(self):
        self.city = City.objects.create(name='Yerevan')
        self.district = District.objects.create(city=self.city, name='Kentron')
        self.developer = Developer.objects.create(name='Acme Development')
        self.bank = Bank.objects.create(name='Ameriabank')
        self.project = Project.objects.create(
            name='Riverside',
            developer=self.developer,
            city=self.city,
            district=self.district,
            address='12 Northern Avenue',
            price_from=85000,
            short_description='Apartments, river view',
        )
        self.project.banks.add(self.bank)
        self.other = Project.objects.create(
            name='Garden Towers',
            developer=self.developer,
            city=self.city,
            district=self.district,
        )


# =============================================================================
# MODEL TESTS
# =============================================================================

class SoftDeleteModelTest(ListingsDataMixin, TestCase):

    def setUp(self):
        self.create_listings()

    def test_soft_delete_and_restore(self):
        self.project.soft_delete()
        self.project.refresh_from_db()
        self.assertTrue(self.project.is_deleted)
        self.assertEqual(list(Project.objects.alive()), [self.other])
        self.assertEqual(list(Project.objects.deleted()), [self.project])

        self.project.restore()
        self.project.refresh_from_db()
        self.assertIsNone(self.project.deleted_at)

    def test_soft_delete_keeps_first_timestamp(self):
        self.project.soft_delete()
        first = Project.objects.get(pk=self.project.pk).deleted_at
        self.project.soft_delete()
        self.assertEqual(Project.objects.get(pk=self.project.pk).deleted_at, first)

    def test_default_currency(self):
        self.assertEqual(self.other.currency, 'USD')
        self.assertFalse(self.other.has_coordinates)


class ExportHelperTest(TestCase):

    def test_rows_to_csv_quotes_and_blanks(self):
        content = rows_to_csv([{'id': 1, 'name': 'A, "B"', 'note': None}], ['id', 'name', 'note'])
        self.assertEqual(content, 'id,name,note\n1,"A, ""B""",\n')


# =============================================================================
# API TESTS
# =============================================================================

class ListingsAPITestCase(ListingsDataMixin, APITestCase):

    def setUp(self):
        self.create_listings()
        self.admin = User.objects.create_user(username='admin', password='testpass123', is_staff=True)
        self.client.force_authenticate(user=self.admin)


class ProjectViewSetTest(ListingsAPITestCase):

    def test_list(self):
        response = self.client.get(reverse('project-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        names = [row['name'] for row in response.data['data']]
        self.assertEqual(names, ['Garden Towers', 'Riverside'])
        riverside = response.data['data'][1]
        self.assertEqual(riverside['developer_name'], 'Acme Development')
        self.assertEqual(riverside['bank_ids'], [self.bank.id])

    def test_search(self):
        response = self.client.get(reverse('project-list'), {'search': 'river'})
        self.assertEqual([row['name'] for row in response.data['data']], ['Riverside'])

    def test_delete_is_soft_and_audited(self):
        response = self.client.delete(reverse('project-detail', kwargs={'pk': self.project.pk}))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(Project.objects.get(pk=self.project.pk).is_deleted)
        self.assertTrue(AuditLog.objects.filter(action_type='project_delete', target_id=str(self.project.pk)).exists())

        response = self.client.get(reverse('project-list'))
        self.assertEqual([row['name'] for row in response.data['data']], ['Garden Towers'])

        response = self.client.get(reverse('project-list'), {'include_deleted': 'true'})
        self.assertEqual(response.data['total'], 2)

    def test_restore(self):
        self.project.soft_delete()
        response = self.client.post(reverse('project-restore', kwargs={'pk': self.project.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Project restored')
        self.assertFalse(Project.objects.get(pk=self.project.pk).is_deleted)
        self.assertTrue(AuditLog.objects.filter(action_type='project_restore').exists())

    def test_export(self):
        self.other.soft_delete()
        response = self.client.get(reverse('project-export'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('attachment; filename=projects.csv', response['Content-Disposition'])
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'id,name,developerName,cityName,districtName,address,priceFrom,currency,shortDescription')
        self.assertEqual(len(lines), 2)
        self.assertIn('"Apartments, river view"', lines[1])

    def test_projects_are_not_created_through_api(self):
        response = self.client.post(reverse('project-list'), {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_requires_staff(self):
        self.client.force_authenticate(user=User.objects.create_user(username='viewer', password='x'))
        response = self.client.get(reverse('project-list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class DirectoryViewSetTest(ListingsAPITestCase):

    def test_create_developer(self):
        response = self.client.post(reverse('developer-list'), {'name': 'Skyline', 'description': 'Towers'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        developer = Developer.objects.get(name='Skyline')
        audit = AuditLog.objects.get(action_type='developer_create')
        self.assertEqual(audit.target_id, str(developer.pk))
        self.assertEqual(audit.metadata_json, {'name': 'Skyline'})

    def test_update_bank(self):
        response = self.client.patch(
            reverse('bank-detail', kwargs={'pk': self.bank.pk}),
            {'description': 'Mortgage partner'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Bank.objects.get(pk=self.bank.pk).description, 'Mortgage partner')
        self.assertTrue(AuditLog.objects.filter(action_type='bank_update').exists())

    def test_developer_project_count(self):
        self.other.soft_delete()
        response = self.client.get(reverse('developer-detail', kwargs={'pk': self.developer.pk}))
        self.assertEqual(response.data['project_count'], 1)

    def test_delete_and_restore_bank(self):
        response = self.client.delete(reverse('bank-detail', kwargs={'pk': self.bank.pk}))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(Bank.objects.get(pk=self.bank.pk).is_deleted)

        response = self.client.get(reverse('bank-list'))
        self.assertEqual(response.data['total'], 0)

        response = self.client.post(reverse('bank-restore', kwargs={'pk': self.bank.pk}))
        self.assertEqual(response.data['message'], 'Bank restored')
        self.assertFalse(Bank.objects.get(pk=self.bank.pk).is_deleted)

    def test_export_developers(self):
        response = self.client.get(reverse('developer-export'))
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], 'id,name,logo_url,description')
        self.assertEqual(lines[1], f'{self.developer.pk},Acme Development,,')
