# Generated manually for the contact submission models
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ContactSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(choices=[('bigfm', 'BigFM'), ('rpr1', 'RPR1'), ('regenbogen', 'Radio Regenbogen'), ('rockfm', 'ROCK FM'), ('bigkarriere', 'BigKarriere')], db_index=True, help_text='Station endpoint the submission was posted to', max_length=20)),
                ('webform_id', models.CharField(blank=True, db_index=True, help_text='Identifier of the physical form instance', max_length=255, null=True)),
                ('submission_form', models.CharField(blank=True, help_text='Form type label shared by many webforms', max_length=255, null=True)),
                ('station', models.CharField(blank=True, db_index=True, help_text='Station label (defaults to the category)', max_length=100, null=True)),
                ('data', models.JSONField(default=dict, help_text='Submitted payload, stored as received')),
                ('field_order', models.JSONField(blank=True, default=list, help_text='Payload keys in submission order')),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='IP address of the submitter', null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, help_text='When the submission was received')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Contact Submission',
                'verbose_name_plural': 'Contact Submissions',
                'db_table': 'contact_submissions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['webform_id', 'created_at'], name='idx_webform_created'),
                    models.Index(fields=['station', 'created_at'], name='idx_station_created'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FieldNotification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('webform_id', models.CharField(max_length=255, unique=True)),
                ('new_fields', models.JSONField(default=list)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Field Notification',
                'verbose_name_plural': 'Field Notifications',
                'db_table': 'field_notifications',
            },
        ),
        migrations.CreateModel(
            name='ContactRead',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('read_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('submission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reads', to='contact.contactsubmission')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='contact_reads', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'contact_reads',
                'ordering': ['read_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('submission', 'user'), name='unique_contact_read_per_user'),
                ],
            },
        ),
    ]
