import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

VISIBILITY_CHOICES = [
    ("PUBLIC", "Public"),
    ("AUTHENTICATED", "Authenticated users only"),
    ("RESTRICT", "Restricted to listed users and classrooms"),
]


def _id():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


def _timestamps():
    return [
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("protocols", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", _id()),
                ("visibility", models.CharField(choices=VISIBILITY_CHOICES, default="RESTRICT", max_length=20)),
                ("answers_visibility", models.CharField(choices=VISIBILITY_CHOICES, default="RESTRICT", max_length=20)),
                *_timestamps(),
                (
                    "protocol",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="applications",
                        to="protocols.protocol",
                    ),
                ),
                (
                    "applier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "viewers_user",
                    models.ManyToManyField(blank=True, related_name="visible_applications", to=settings.AUTH_USER_MODEL),
                ),
                (
                    "viewers_classroom",
                    models.ManyToManyField(blank=True, related_name="visible_applications", to="core.classroom"),
                ),
                (
                    "answers_viewers_user",
                    models.ManyToManyField(
                        blank=True, related_name="answer_visible_applications", to=settings.AUTH_USER_MODEL
                    ),
                ),
                (
                    "answers_viewers_classroom",
                    models.ManyToManyField(blank=True, related_name="answer_visible_applications", to="core.classroom"),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="ApplicationAnswer",
            fields=[
                ("id", _id()),
                ("date", models.DateTimeField()),
                ("approved", models.BooleanField(default=False)),
                *_timestamps(),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="answers",
                        to="applications.application",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="application_answers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "address",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="application_answers",
                        to="core.address",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="ItemAnswerGroup",
            fields=[
                ("id", _id()),
                *_timestamps(),
                (
                    "application_answer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_answer_groups",
                        to="applications.applicationanswer",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="ItemAnswer",
            fields=[
                ("id", _id()),
                ("text", models.CharField(blank=True, max_length=255)),
                *_timestamps(),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_answers",
                        to="applications.itemanswergroup",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_answers",
                        to="protocols.item",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="OptionAnswer",
            fields=[
                ("id", _id()),
                ("text", models.CharField(blank=True, max_length=255)),
                *_timestamps(),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="option_answers",
                        to="applications.itemanswergroup",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="option_answers",
                        to="protocols.item",
                    ),
                ),
                (
                    "option",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="option_answers",
                        to="protocols.itemoption",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="TableAnswer",
            fields=[
                ("id", _id()),
                ("text", models.CharField(blank=True, max_length=255)),
                *_timestamps(),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="table_answers",
                        to="applications.itemanswergroup",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="table_answers",
                        to="protocols.item",
                    ),
                ),
                (
                    "column",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="table_answers",
                        to="protocols.tablecolumn",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
    ]
