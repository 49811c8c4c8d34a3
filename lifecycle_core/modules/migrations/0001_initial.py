# Generated manually for the installable modules app

from django.conf import settings
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ModuleResource',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='Module code name', max_length=200, unique=True)),
                ('display_name', models.CharField(blank=True, max_length=200)),
                ('version', models.CharField(blank=True, help_text='Installed module version', max_length=50)),
                ('is_installed', models.BooleanField(default=False)),
                ('needs_restart', models.BooleanField(default=False, help_text='Module code is not loaded until the application restarts')),
                ('installed_at', models.DateTimeField(blank=True, null=True)),
                ('object_types', models.JSONField(blank=True, default=list, help_text='Object types registered by the module')),
                ('installed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='installed_modules', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'lifecycle_module_resources',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_installed', 'name'], name='lifecycle_res_installed_idx')],
            },
        ),
        migrations.CreateModel(
            name='ModuleDataClass',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('class_name', models.CharField(max_length=200, unique=True)),
                ('table_name', models.CharField(blank=True, max_length=100)),
                ('definition', models.JSONField(blank=True, default=dict)),
                ('resource', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='data_classes', to='lifecycle_modules.moduleresource')),
            ],
            options={
                'db_table': 'lifecycle_module_data_classes',
                'ordering': ['class_name'],
            },
        ),
        migrations.CreateModel(
            name='ModuleObject',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('object_type', models.CharField(db_index=True, max_length=100)),
                ('code_name', models.CharField(max_length=200)),
                ('data', models.JSONField(blank=True, default=dict)),
                ('resource', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='module_objects', to='lifecycle_modules.moduleresource')),
            ],
            options={
                'db_table': 'lifecycle_module_objects',
                'ordering': ['object_type', 'code_name'],
                'unique_together': {('resource', 'object_type', 'code_name')},
            },
        ),
    ]
