from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("verification", "Verification"),
                            ("failure_alert", "Failure alert"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        help_text="Key of the request that triggered this notification.",
                        max_length=160,
                        null=True,
                        unique=True,
                    ),
                ),
                ("recipient", models.CharField(db_index=True, max_length=254)),
                (
                    "account_id",
                    models.CharField(blank=True, db_index=True, default="", max_length=64),
                ),
                ("driver", models.CharField(max_length=50)),
                ("message_id", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
