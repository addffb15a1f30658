from __future__ import annotations

from django.conf import settings
from django.db import models

from picce_app.core.models import Address, Classroom, VisibilityMode
from picce_app.protocols.models import Item, ItemOption, Protocol, TableColumn


class Application(models.Model):
    # Protocols with applications cannot be deleted.
    protocol = models.ForeignKey(Protocol, on_delete=models.PROTECT, related_name="applications")
    applier = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="applications"
    )
    visibility = models.CharField(
        max_length=20, choices=VisibilityMode.choices, default=VisibilityMode.RESTRICT
    )
    answers_visibility = models.CharField(
        max_length=20, choices=VisibilityMode.choices, default=VisibilityMode.RESTRICT
    )
    viewers_user = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="visible_applications"
    )
    viewers_classroom = models.ManyToManyField(
        Classroom, blank=True, related_name="visible_applications"
    )
    answers_viewers_user = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="answer_visible_applications"
    )
    answers_viewers_classroom = models.ManyToManyField(
        Classroom, blank=True, related_name="answer_visible_applications"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]


class ApplicationAnswer(models.Model):
    application = models.ForeignKey(Application, on_delete=models.CASCADE, related_name="answers")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="application_answers"
    )
    date = models.DateTimeField()
    address = models.ForeignKey(
        Address, on_delete=models.SET_NULL, null=True, blank=True, related_name="application_answers"
    )
    approved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]


class ItemAnswerGroup(models.Model):
    application_answer = models.ForeignKey(
        ApplicationAnswer, on_delete=models.CASCADE, related_name="item_answer_groups"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]


class ItemAnswer(models.Model):
    group = models.ForeignKey(ItemAnswerGroup, on_delete=models.CASCADE, related_name="item_answers")
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="item_answers")
    text = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]


class OptionAnswer(models.Model):
    group = models.ForeignKey(ItemAnswerGroup, on_delete=models.CASCADE, related_name="option_answers")
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="option_answers")
    option = models.ForeignKey(ItemOption, on_delete=models.CASCADE, related_name="option_answers")
    text = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]


class TableAnswer(models.Model):
    group = models.ForeignKey(ItemAnswerGroup, on_delete=models.CASCADE, related_name="table_answers")
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name="table_answers")
    column = models.ForeignKey(TableColumn, on_delete=models.CASCADE, related_name="table_answers")
    text = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
