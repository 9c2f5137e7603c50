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
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('filename', models.CharField(help_text='Sanitized display name, unique per owner', max_length=255)),
                ('object_key', models.CharField(editable=False, help_text='Key in storage: users/{owner_id}/files/{uuid}-{filename}', max_length=512, unique=True)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('content_type', models.CharField(help_text='MIME type validated against the allow-list on upload', max_length=255)),
                ('thumbnail_key', models.CharField(blank=True, help_text='Optional key of a derived asset', max_length=512, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stored_files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['owner', '-created_at'], name='files_owner_recent_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'filename'), name='files_owner_filename_unique'),
                    models.CheckConstraint(condition=models.Q(('size_bytes__gte', 0)), name='files_size_bytes_non_negative'),
                ],
            },
        ),
    ]
