import uuid

from django.db import migrations, models


def _resource_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("name", models.CharField(max_length=255)),
        ("description", models.TextField(blank=True)),
        (
            "total_inventory",
            models.PositiveIntegerField(default=0, help_text="Units sellable on any single day."),
        ),
        ("image_url", models.URLField(blank=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RoomType",
            fields=_resource_fields() + [
                ("price_per_night", models.DecimalField(decimal_places=2, max_digits=10)),
                ("capacity", models.PositiveSmallIntegerField(default=2, help_text="Guests per room.")),
            ],
            options={
                "verbose_name": "Room type",
                "verbose_name_plural": "Room types",
                "ordering": ["name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="MealOption",
            fields=_resource_fields() + [
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
            ],
            options={
                "verbose_name": "Meal option",
                "verbose_name_plural": "Meal options",
                "ordering": ["name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Activity",
            fields=_resource_fields() + [
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("duration", models.CharField(blank=True, max_length=50)),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("end_time", models.TimeField(blank=True, null=True)),
            ],
            options={
                "verbose_name": "Activity",
                "verbose_name_plural": "Activities",
                "ordering": ["name"],
                "abstract": False,
            },
        ),
    ]
