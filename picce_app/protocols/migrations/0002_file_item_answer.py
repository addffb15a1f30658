import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("applications", "0001_initial"),
        ("protocols", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="file",
            name="item_answer",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.CASCADE,
                related_name="files",
                to="applications.itemanswer",
            ),
        ),
    ]
