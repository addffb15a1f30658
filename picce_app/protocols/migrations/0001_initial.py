import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

VISIBILITY_CHOICES = [
    ("PUBLIC", "Public"),
    ("AUTHENTICATED", "Authenticated users only"),
    ("RESTRICT", "Restricted to listed users and classrooms"),
]
DEPENDENCY_CHOICES = [
    ("EXACT_ANSWER", "Exact answer"),
    ("OPTION_SELECTED", "Option selected"),
    ("MIN", "Minimum"),
    ("MAX", "Maximum"),
]


def _id():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Protocol",
            fields=[
                ("id", _id()),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("enabled", models.BooleanField(default=True)),
                ("replicable", models.BooleanField(default=False)),
                ("visibility", models.CharField(choices=VISIBILITY_CHOICES, default="RESTRICT", max_length=20)),
                ("applicability", models.CharField(choices=VISIBILITY_CHOICES, default="RESTRICT", max_length=20)),
                ("answers_visibility", models.CharField(choices=VISIBILITY_CHOICES, default="RESTRICT", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_protocols",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "managers",
                    models.ManyToManyField(blank=True, related_name="managed_protocols", to=settings.AUTH_USER_MODEL),
                ),
                (
                    "appliers",
                    models.ManyToManyField(blank=True, related_name="applicable_protocols", to=settings.AUTH_USER_MODEL),
                ),
                (
                    "viewers_user",
                    models.ManyToManyField(blank=True, related_name="visible_protocols", to=settings.AUTH_USER_MODEL),
                ),
                (
                    "viewers_classroom",
                    models.ManyToManyField(blank=True, related_name="visible_protocols", to="core.classroom"),
                ),
                (
                    "answers_viewers_user",
                    models.ManyToManyField(blank=True, related_name="answer_visible_protocols", to=settings.AUTH_USER_MODEL),
                ),
                (
                    "answers_viewers_classroom",
                    models.ManyToManyField(blank=True, related_name="answer_visible_protocols", to="core.classroom"),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Page",
            fields=[
                ("id", _id()),
                ("placement", models.PositiveIntegerField()),
                (
                    "type",
                    models.CharField(
                        choices=[("ITEMS", "Items"), ("SUBPROTOCOL", "Subprotocol")],
                        default="ITEMS",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "protocol",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pages",
                        to="protocols.protocol",
                    ),
                ),
            ],
            options={"ordering": ["placement", "id"]},
        ),
        migrations.CreateModel(
            name="ItemGroup",
            fields=[
                ("id", _id()),
                ("placement", models.PositiveIntegerField()),
                ("is_repeatable", models.BooleanField(default=False)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("ONE_DIMENSIONAL", "One dimensional"),
                            ("CHECKBOX_TABLE", "Checkbox table"),
                            ("RADIO_TABLE", "Radio table"),
                            ("TEXTBOX_TABLE", "Textbox table"),
                        ],
                        default="ONE_DIMENSIONAL",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_groups",
                        to="protocols.page",
                    ),
                ),
            ],
            options={"ordering": ["placement", "id"]},
        ),
        migrations.CreateModel(
            name="Item",
            fields=[
                ("id", _id()),
                ("text", models.CharField(max_length=3000)),
                ("description", models.TextField(blank=True)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("TEXTBOX", "Text box"),
                            ("NUMBERBOX", "Number box"),
                            ("RANGE", "Range"),
                            ("CHECKBOX", "Checkbox"),
                            ("RADIO", "Radio"),
                            ("SELECT", "Select"),
                            ("TEXT", "Text"),
                            ("UPLOAD", "Upload"),
                            ("DATEBOX", "Date box"),
                            ("TIMEBOX", "Time box"),
                            ("LOCATIONBOX", "Location box"),
                        ],
                        max_length=20,
                    ),
                ),
                ("placement", models.PositiveIntegerField()),
                ("enabled", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="protocols.itemgroup",
                    ),
                ),
            ],
            options={"ordering": ["placement", "id"]},
        ),
        migrations.CreateModel(
            name="ItemOption",
            fields=[
                ("id", _id()),
                ("text", models.CharField(max_length=255)),
                ("placement", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_options",
                        to="protocols.item",
                    ),
                ),
            ],
            options={"ordering": ["placement", "id"]},
        ),
        migrations.CreateModel(
            name="ItemValidation",
            fields=[
                ("id", _id()),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("MANDATORY", "Mandatory"),
                            ("MIN", "Minimum"),
                            ("MAX", "Maximum"),
                            ("STEP", "Step"),
                        ],
                        max_length=20,
                    ),
                ),
                ("argument", models.CharField(max_length=255)),
                ("custom_message", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_validations",
                        to="protocols.item",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="TableColumn",
            fields=[
                ("id", _id()),
                ("text", models.CharField(max_length=255)),
                ("placement", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="table_columns",
                        to="protocols.itemgroup",
                    ),
                ),
            ],
            options={"ordering": ["placement", "id"]},
        ),
        migrations.CreateModel(
            name="PageDependencyRule",
            fields=[
                ("id", _id()),
                ("type", models.CharField(choices=DEPENDENCY_CHOICES, max_length=20)),
                ("argument", models.CharField(max_length=255)),
                ("custom_message", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pagedependencyrules",
                        to="protocols.item",
                    ),
                ),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dependencies",
                        to="protocols.page",
                    ),
                ),
            ],
            options={"ordering": ["id"], "abstract": False},
        ),
        migrations.CreateModel(
            name="ItemGroupDependencyRule",
            fields=[
                ("id", _id()),
                ("type", models.CharField(choices=DEPENDENCY_CHOICES, max_length=20)),
                ("argument", models.CharField(max_length=255)),
                ("custom_message", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="itemgroupdependencyrules",
                        to="protocols.item",
                    ),
                ),
                (
                    "item_group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dependencies",
                        to="protocols.itemgroup",
                    ),
                ),
            ],
            options={"ordering": ["id"], "abstract": False},
        ),
        migrations.CreateModel(
            name="File",
            fields=[
                ("id", _id()),
                ("path", models.CharField(max_length=255)),
                ("description", models.CharField(blank=True, max_length=3000)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="files",
                        to="protocols.item",
                    ),
                ),
                (
                    "item_option",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="files",
                        to="protocols.itemoption",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
    ]
