from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="account",
            name="compensated",
            field=models.BooleanField(
                default=False,
                help_text="Deactivated by the signup pipeline after a later stage failed.",
            ),
        ),
    ]
