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
            name='RateMaster',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('center_name', models.CharField(max_length=100)),
                ('tonnage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'rate_masters',
            },
        ),
        migrations.CreateModel(
            name='RateDetail',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('BASE', '기본요금'), ('CALL_FEE', '콜비'), ('WAYPOINT_FEE', '경유비'), ('SPECIAL', '특수요금')], max_length=16)),
                ('region', models.CharField(blank=True, max_length=50, null=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('conditions', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('valid_from', models.DateTimeField(blank=True, null=True)),
                ('valid_to', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('rate_master', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='details', to='rates.ratemaster')),
            ],
            options={
                'db_table': 'rate_details',
                'ordering': ['type', 'region', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='ratemaster',
            constraint=models.UniqueConstraint(fields=('center_name', 'tonnage'), name='unique_center_tonnage'),
        ),
        migrations.AddIndex(
            model_name='ratemaster',
            index=models.Index(fields=['is_active', 'center_name'], name='rate_master_active_center_idx'),
        ),
        migrations.AddConstraint(
            model_name='ratedetail',
            constraint=models.CheckConstraint(condition=models.Q(amount__gte=0), name='rate_detail_amount_non_negative'),
        ),
        migrations.AddIndex(
            model_name='ratedetail',
            index=models.Index(fields=['rate_master', 'type'], name='rate_detail_master_type_idx'),
        ),
    ]
