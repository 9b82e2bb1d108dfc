from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('category', models.CharField(choices=[('Breakfast', 'Breakfast'), ('Main Course', 'Main Course'), ('Snacks', 'Snacks'), ('Beverages', 'Beverages'), ('Desserts', 'Desserts')], max_length=20)),
                ('price', models.PositiveIntegerField()),
                ('type', models.CharField(choices=[('Veg', 'Veg'), ('Non-Veg', 'Non-Veg')], default='Veg', max_length=10)),
                ('rating', models.FloatField(default=0)),
                ('prep_time', models.CharField(blank=True, max_length=30)),
                ('description', models.TextField(blank=True)),
                ('is_special', models.BooleanField(default=False)),
                ('image', models.CharField(blank=True, default='/placeholder.svg', max_length=500)),
                ('is_available', models.BooleanField(default=True)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
    ]
