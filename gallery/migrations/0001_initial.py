# Generated migration for Painting model

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Painting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('work_type', models.CharField(max_length=255)),
                ('year', models.IntegerField()),
                ('image_location', models.URLField(help_text='Public URL of the image in object storage', max_length=1000)),
                ('href', models.URLField(blank=True, help_text='Optional external link', max_length=1000, null=True)),
                ('rank', models.IntegerField(db_index=True, help_text='Curatorial display order, higher sorts first')),
                ('recorded_at', models.DateTimeField(auto_now_add=True, help_text='Row creation timestamp', null=True)),
            ],
            options={
                'ordering': ['-rank', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='painting',
            constraint=models.UniqueConstraint(deferrable=models.Deferrable['DEFERRED'], fields=('rank',), name='uniq_painting_rank'),
        ),
    ]
