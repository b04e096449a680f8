# Generated manually

from decimal import Decimal
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ProductCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('slug', models.SlugField(max_length=200, unique=True)),
                ('description', models.TextField(blank=True)),
                ('image_url', models.URLField(blank=True)),
                ('display_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'product_categories',
                'verbose_name_plural': 'product categories',
                'ordering': ['display_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='JewelryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('slug', models.SlugField(max_length=200, unique=True)),
                ('type', models.CharField(choices=[('necklace', 'Necklace'), ('bracelet', 'Bracelet'), ('ring', 'Ring'), ('earring', 'Earring')], db_index=True, max_length=20)),
                ('product_type', models.CharField(choices=[('customizable', 'Customizable'), ('ready_made', 'Ready Made')], default='customizable', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('base_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('base_price_lab_grown', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('black_onyx_base_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('black_onyx_base_price_lab_grown', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('base_image_url', models.URLField(blank=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='items', to='catalog.productcategory')),
            ],
            options={
                'db_table': 'jewelry_items',
            },
        ),
    ]
