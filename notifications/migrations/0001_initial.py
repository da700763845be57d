import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

from notifications.conf import notification_settings


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target_id', models.CharField(max_length=255)),
                ('notifiable_id', models.CharField(max_length=255)),
                ('group_id', models.CharField(blank=True, max_length=255, null=True)),
                ('notifier_id', models.CharField(blank=True, max_length=255, null=True)),
                ('key', models.CharField(max_length=255)),
                ('parameters', models.JSONField(blank=True, default=dict)),
                ('opened_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('group_owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name='group_members', to='notifications.notification')),
                ('group_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
                ('notifiable_type', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
                ('notifier_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
                ('target_type', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
            ],
            options={
                'db_table': notification_settings.TABLE_NAME,
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['target_type', 'target_id', 'opened_at'], name='notification_target_idx'),
                    models.Index(fields=['group_owner', 'opened_at'], name='notification_group_owner_idx'),
                ],
            },
        ),
    ]
