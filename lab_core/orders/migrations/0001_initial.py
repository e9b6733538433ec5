import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("patients", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(max_length=32, unique=True)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("partial", "Partial"), ("paid", "Paid")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("cash", "Cash"), ("card", "Card"), ("online", "Online")],
                        default="cash",
                        max_length=16,
                    ),
                ),
                (
                    "order_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[("normal", "Normal"), ("urgent", "Urgent"), ("stat", "Stat")],
                        default="normal",
                        max_length=16,
                    ),
                ),
                ("sample_collection_date", models.DateTimeField(blank=True, null=True)),
                ("expected_report_date", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_lab_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "doctor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referred_lab_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("packages", models.ManyToManyField(blank=True, related_name="orders", to="catalog.testpackage")),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="patients.patient",
                    ),
                ),
                ("tests", models.ManyToManyField(blank=True, related_name="orders", to="catalog.labtest")),
            ],
            options={
                "db_table": "orders_order",
                "constraints": [
                    models.CheckConstraint(check=models.Q(paid_amount__gte=0), name="ck_order_paid_non_negative"),
                    models.CheckConstraint(
                        check=models.Q(paid_amount__lte=models.F("total_amount")), name="ck_order_paid_le_total"
                    ),
                ],
                "indexes": [
                    models.Index(fields=["order_status", "created_at"], name="orders_status_created_idx"),
                    models.Index(fields=["patient", "created_at"], name="orders_patient_created_idx"),
                ],
            },
        ),
    ]
