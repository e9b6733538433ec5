import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LabTest",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("unit", models.CharField(blank=True, max_length=32)),
                ("normal_range", models.CharField(blank=True, max_length=128)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "catalog_lab_test",
                "ordering": ["code"],
                "constraints": [
                    models.CheckConstraint(check=models.Q(price__gte=0), name="ck_lab_test_price_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TestPackage",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("package_code", models.CharField(max_length=32, unique=True)),
                ("package_name", models.CharField(max_length=255)),
                ("original_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("package_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("is_active", models.BooleanField(default=True)),
                ("tests", models.ManyToManyField(related_name="packages", to="catalog.labtest")),
            ],
            options={
                "db_table": "catalog_test_package",
                "ordering": ["package_code"],
                "constraints": [
                    models.CheckConstraint(
                        check=models.Q(package_price__gte=0), name="ck_test_package_price_non_negative"
                    ),
                ],
            },
        ),
    ]
