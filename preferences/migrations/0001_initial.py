# Generated manually for the table preference model
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
            name='UserTablePreference',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(blank=True, db_index=True, help_text='Scope as station[:type[:form]]; empty for global', max_length=255, null=True)),
                ('preference_name', models.CharField(help_text='Kind of preference, e.g. list-view-columns', max_length=255)),
                ('visible_columns', models.JSONField(blank=True, default=list)),
                ('sort_config', models.JSONField(blank=True, default=dict)),
                ('saved_filters', models.JSONField(blank=True, default=dict)),
                ('is_default', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='table_preferences', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Table Preference',
                'verbose_name_plural': 'Table Preferences',
                'db_table': 'user_table_preferences',
                'ordering': ['-is_default', '-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'category'], name='idx_pref_user_category'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('category__isnull', False)), fields=('user', 'category', 'preference_name'), name='unique_user_category_preference'),
                    models.UniqueConstraint(condition=models.Q(('category__isnull', True)), fields=('user', 'preference_name'), name='unique_user_global_preference'),
                ],
            },
        ),
    ]
