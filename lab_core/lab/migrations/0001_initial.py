import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("orders", "0001_initial"),
        ("patients", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="LabResult",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("result_data", models.JSONField(default=list)),
                (
                    "overall_status",
                    models.CharField(
                        choices=[("normal", "Normal"), ("abnormal", "Abnormal"), ("critical", "Critical")],
                        default="normal",
                        max_length=16,
                    ),
                ),
                ("comments", models.CharField(blank=True, max_length=1000)),
                ("report_url", models.URLField(blank=True, max_length=500)),
                ("reported_at", models.DateTimeField()),
                ("is_verified", models.BooleanField(default=False)),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="results",
                        to="orders.order",
                    ),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lab_results",
                        to="patients.patient",
                    ),
                ),
                (
                    "technician",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="submitted_lab_results",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "test",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="results",
                        to="catalog.labtest",
                    ),
                ),
                (
                    "verified_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="verified_lab_results",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "lab_result",
                "constraints": [
                    models.UniqueConstraint(fields=("order", "test"), name="uq_lab_result_order_test"),
                    models.CheckConstraint(
                        check=(
                            models.Q(is_verified=True, verified_at__isnull=False, verified_by__isnull=False)
                            | models.Q(is_verified=False, verified_at__isnull=True, verified_by__isnull=True)
                        ),
                        name="ck_lab_result_verification_stamps",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["patient", "created_at"], name="lab_result_patient_idx"),
                    models.Index(fields=["is_verified", "created_at"], name="lab_result_verified_idx"),
                ],
            },
        ),
    ]
