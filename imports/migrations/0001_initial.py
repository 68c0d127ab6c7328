import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ImportJob',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('filename', models.CharField(max_length=255)),
                ('entity_type', models.CharField(choices=[('projects', 'Projects'), ('developers', 'Developers'), ('banks', 'Banks')], db_index=True, default='projects', help_text='Which importer ran', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed'), ('undone', 'Undone')], db_index=True, default='processing', max_length=20)),
                ('total_rows', models.PositiveIntegerField(default=0)),
                ('inserted_count', models.PositiveIntegerField(default=0)),
                ('updated_count', models.PositiveIntegerField(default=0, help_text='Always 0: the importer only inserts')),
                ('failed_count', models.PositiveIntegerField(default=0)),
                ('created_record_ids', models.JSONField(blank=True, default=list, help_text='Ids created by this job, in file order')),
                ('error_message', models.TextField(blank=True, help_text='Job-level failure cause')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('undone_at', models.DateTimeField(blank=True, null=True)),
                ('created_by_admin', models.ForeignKey(blank=True, help_text='Admin who uploaded the file', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='import_jobs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'import_jobs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', '-created_at'], name='import_jobs_status_8f2c1d_idx'),
                    models.Index(fields=['entity_type', '-created_at'], name='import_jobs_entity_5b7e90_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ImportJobError',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('row_number', models.PositiveIntegerField()),
                ('error_message', models.TextField()),
                ('raw_row_json', models.JSONField(default=dict, help_text='Original row data that caused error')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('import_job', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='errors', to='imports.importjob')),
            ],
            options={
                'db_table': 'import_job_errors',
                'ordering': ['row_number', 'id'],
            },
        ),
    ]
