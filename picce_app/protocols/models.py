from __future__ import annotations

from django.conf import settings
from django.db import models

from picce_app.core.models import Classroom, VisibilityMode


class Protocol(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    enabled = models.BooleanField(default=True)
    replicable = models.BooleanField(default=False)
    visibility = models.CharField(
        max_length=20, choices=VisibilityMode.choices, default=VisibilityMode.RESTRICT
    )
    applicability = models.CharField(
        max_length=20, choices=VisibilityMode.choices, default=VisibilityMode.RESTRICT
    )
    answers_visibility = models.CharField(
        max_length=20, choices=VisibilityMode.choices, default=VisibilityMode.RESTRICT
    )
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="created_protocols"
    )
    managers = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="managed_protocols"
    )
    appliers = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="applicable_protocols"
    )
    viewers_user = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="visible_protocols"
    )
    viewers_classroom = models.ManyToManyField(
        Classroom, blank=True, related_name="visible_protocols"
    )
    answers_viewers_user = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="answer_visible_protocols"
    )
    answers_viewers_classroom = models.ManyToManyField(
        Classroom, blank=True, related_name="answer_visible_protocols"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.title


class Page(models.Model):
    class Type(models.TextChoices):
        ITEMS = "ITEMS", "Items"
        SUBPROTOCOL = "SUBPROTOCOL", "Subprotocol"

    protocol = models.ForeignKey(Protocol, on_delete=models.CASCADE, related_name="pages")
    placement = models.PositiveIntegerField()
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.ITEMS)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["placement", "id"]


class ItemGroup(models.Model):
    class Type(models.TextChoices):
        ONE_DIMENSIONAL = "ONE_DIMENSIONAL", "One dimensional"
        CHECKBOX_TABLE = "CHECKBOX_TABLE", "Checkbox table"
        RADIO_TABLE = "RADIO_TABLE", "Radio table"
        TEXTBOX_TABLE = "TEXTBOX_TABLE", "Textbox table"

    TABLE_TYPES = (Type.CHECKBOX_TABLE, Type.RADIO_TABLE, Type.TEXTBOX_TABLE)

    page = models.ForeignKey(Page, on_delete=models.CASCADE, related_name="item_groups")
    placement = models.PositiveIntegerField()
    is_repeatable = models.BooleanField(default=False)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.ONE_DIMENSIONAL)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["placement", "id"]


class Item(models.Model):
    class Type(models.TextChoices):
        TEXTBOX = "TEXTBOX", "Text box"
        NUMBERBOX = "NUMBERBOX", "Number box"
        RANGE = "RANGE", "Range"
        CHECKBOX = "CHECKBOX", "Checkbox"
        RADIO = "RADIO", "Radio"
        SELECT = "SELECT", "Select"
        TEXT = "TEXT", "Text"
        UPLOAD = "UPLOAD", "Upload"
        DATEBOX = "DATEBOX", "Date box"
        TIMEBOX = "TIMEBOX", "Time box"
        LOCATIONBOX = "LOCATIONBOX", "Location box"

    OPTION_TYPES = (Type.CHECKBOX, Type.RADIO, Type.SELECT)

    group = models.ForeignKey(ItemGroup, on_delete=models.CASCADE, related_name="items")
    text = models.CharField(max_length=3000)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=Type.choices)
    placement = models.PositiveIntegerField()
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["placement", "id"]

    def __str__(self) -> str:  # pragma: no cover
        return self.text


class ItemOption(models.Model):
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="item_options")
    text = models.CharField(max_length=255)
    placement = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["placement", "id"]


class ItemValidation(models.Model):
    class Type(models.TextChoices):
        MANDATORY = "MANDATORY", "Mandatory"
        MIN = "MIN", "Minimum"
        MAX = "MAX", "Maximum"
        STEP = "STEP", "Step"

    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="item_validations")
    type = models.CharField(max_length=20, choices=Type.choices)
    argument = models.CharField(max_length=255)
    custom_message = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]


class TableColumn(models.Model):
    group = models.ForeignKey(ItemGroup, on_delete=models.CASCADE, related_name="table_columns")
    text = models.CharField(max_length=255)
    placement = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["placement", "id"]


class DependencyType(models.TextChoices):
    EXACT_ANSWER = "EXACT_ANSWER", "Exact answer"
    OPTION_SELECTED = "OPTION_SELECTED", "Option selected"
    MIN = "MIN", "Minimum"
    MAX = "MAX", "Maximum"


class DependencyRule(models.Model):
    """Conditional-display rule pointing at an item declared earlier in the protocol."""

    type = models.CharField(max_length=20, choices=DependencyType.choices)
    argument = models.CharField(max_length=255)
    custom_message = models.CharField(max_length=255, blank=True)
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="%(class)ss")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["id"]


class PageDependencyRule(DependencyRule):
    page = models.ForeignKey(Page, on_delete=models.CASCADE, related_name="dependencies")

    class Meta(DependencyRule.Meta):
        pass


class ItemGroupDependencyRule(DependencyRule):
    item_group = models.ForeignKey(ItemGroup, on_delete=models.CASCADE, related_name="dependencies")

    class Meta(DependencyRule.Meta):
        pass


class File(models.Model):
    """Stored attachment. Exactly one of the owner references is set."""

    path = models.CharField(max_length=255)
    description = models.CharField(max_length=3000, blank=True)
    item = models.ForeignKey(
        Item, on_delete=models.CASCADE, null=True, blank=True, related_name="files"
    )
    item_option = models.ForeignKey(
        ItemOption, on_delete=models.CASCADE, null=True, blank=True, related_name="files"
    )
    item_answer = models.ForeignKey(
        "applications.ItemAnswer", on_delete=models.CASCADE, null=True, blank=True, related_name="files"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:  # pragma: no cover
        return self.path
