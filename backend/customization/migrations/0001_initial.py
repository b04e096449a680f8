# Generated manually

from decimal import Decimal
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CustomizationOption',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('setting_id', models.CharField(db_index=True, max_length=100)),
                ('setting_title', models.CharField(max_length=200)),
                ('setting_display_order', models.IntegerField(default=0)),
                ('required', models.BooleanField(default=True)),
                ('affects_image_variant', models.BooleanField(default=True)),
                ('option_id', models.CharField(max_length=100)),
                ('option_name', models.CharField(max_length=200)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('price_lab_grown', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('image_url', models.URLField(blank=True, null=True)),
                ('color_gradient', models.CharField(blank=True, max_length=255, null=True)),
                ('display_order', models.IntegerField(default=0)),
                ('filename_slug', models.CharField(blank=True, help_text='Segment used in pre-rendered variant image filenames', max_length=100, null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('jewelry_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='customization_options', to='catalog.jewelryitem')),
            ],
            options={
                'db_table': 'customization_options',
                'unique_together': {('jewelry_item', 'setting_id', 'option_id')},
                'indexes': [models.Index(fields=['jewelry_item', 'setting_display_order', 'display_order'], name='custopt_item_order_idx')],
            },
        ),
        migrations.CreateModel(
            name='CustomizationLogicRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rule_name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('condition_setting_id', models.CharField(max_length=100)),
                ('condition_option_id', models.CharField(max_length=100)),
                ('action_type', models.CharField(choices=[('exclude_options', 'Exclude Options'), ('include_only', 'Include Only'), ('set_required', 'Set Required'), ('set_optional', 'Set Optional'), ('set_price_multiplier', 'Set Price Multiplier'), ('exclude_setting', 'Exclude Setting'), ('auto_select', 'Auto Select'), ('propose_selection', 'Propose Selection')], max_length=30)),
                ('target_setting_id', models.CharField(max_length=100)),
                ('target_option_ids', models.JSONField(blank=True, default=list)),
                ('price_multiplier', models.DecimalField(blank=True, decimal_places=3, max_digits=6, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('jewelry_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logic_rules', to='catalog.jewelryitem')),
            ],
            options={
                'db_table': 'customization_logic_rules',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
