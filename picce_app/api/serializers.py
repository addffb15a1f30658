"""Request payload shapes and the full read representation of each entity.

Payload serializers only check shape; semantic and referential checks live
with the domain code. Read serializers render every field, visibility
projection is applied afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping

from django.contrib.auth import get_user_model
from rest_framework import serializers

from picce_app.applications.models import (
    Application,
    ApplicationAnswer,
    ItemAnswer,
    ItemAnswerGroup,
    OptionAnswer,
    TableAnswer,
)
from picce_app.core.models import Address, Classroom, Institution, VisibilityMode
from picce_app.protocols.models import (
    DependencyType,
    File,
    Item,
    ItemGroup,
    ItemOption,
    ItemValidation,
    Page,
    PageDependencyRule,
    Protocol,
    TableColumn,
)

User = get_user_model()


def id_list():
    return serializers.ListField(child=serializers.IntegerField(min_value=1), default=list)


class StrictSerializer(serializers.Serializer):
    """Rejects keys it does not declare."""

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            unknown = sorted(set(data) - set(self.fields))
            if unknown:
                raise serializers.ValidationError({name: ["Unknown field."] for name in unknown})
        return super().to_internal_value(data)


# Protocol payloads


class FilePayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    description = serializers.CharField(max_length=3000, allow_blank=True, default="")


class ItemOptionPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    text = serializers.CharField(max_length=255)
    placement = serializers.IntegerField()
    files = FilePayloadSerializer(many=True, default=list)


class ItemValidationPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    type = serializers.ChoiceField(choices=ItemValidation.Type.choices)
    argument = serializers.CharField(max_length=255)
    custom_message = serializers.CharField(max_length=255, allow_blank=True, default="")


class TableColumnPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    text = serializers.CharField(max_length=255)
    placement = serializers.IntegerField()


class DependencyPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    type = serializers.ChoiceField(choices=DependencyType.choices)
    argument = serializers.CharField(max_length=255, allow_blank=True, default="")
    custom_message = serializers.CharField(max_length=255, allow_blank=True, default="")
    item_temp_id = serializers.IntegerField(min_value=1)


class ItemPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    temp_id = serializers.IntegerField(min_value=1)
    text = serializers.CharField(max_length=3000)
    description = serializers.CharField(allow_blank=True, default="")
    type = serializers.ChoiceField(choices=Item.Type.choices)
    placement = serializers.IntegerField()
    enabled = serializers.BooleanField(default=True)
    item_options = ItemOptionPayloadSerializer(many=True, default=list)
    item_validations = ItemValidationPayloadSerializer(many=True, default=list)
    files = FilePayloadSerializer(many=True, default=list)


class ItemGroupPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    placement = serializers.IntegerField()
    is_repeatable = serializers.BooleanField(default=False)
    type = serializers.ChoiceField(choices=ItemGroup.Type.choices)
    items = ItemPayloadSerializer(many=True)
    table_columns = TableColumnPayloadSerializer(many=True, default=list)
    dependencies = DependencyPayloadSerializer(many=True, default=list)


class PagePayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    placement = serializers.IntegerField()
    type = serializers.ChoiceField(choices=Page.Type.choices, default=Page.Type.ITEMS)
    item_groups = ItemGroupPayloadSerializer(many=True, default=list)
    dependencies = DependencyPayloadSerializer(many=True, default=list)


class ProtocolPayloadSerializer(StrictSerializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(allow_blank=True, default="")
    enabled = serializers.BooleanField(default=True)
    replicable = serializers.BooleanField(default=False)
    visibility = serializers.ChoiceField(choices=VisibilityMode.choices)
    applicability = serializers.ChoiceField(choices=VisibilityMode.choices)
    answers_visibility = serializers.ChoiceField(choices=VisibilityMode.choices)
    managers = id_list()
    appliers = id_list()
    viewers_user = id_list()
    viewers_classroom = id_list()
    answers_viewers_user = id_list()
    answers_viewers_classroom = id_list()
    pages = PagePayloadSerializer(many=True)


# Application payloads


class ApplicationUpdatePayloadSerializer(StrictSerializer):
    visibility = serializers.ChoiceField(choices=VisibilityMode.choices)
    answers_visibility = serializers.ChoiceField(choices=VisibilityMode.choices)
    viewers_user = id_list()
    viewers_classroom = id_list()
    answers_viewers_user = id_list()
    answers_viewers_classroom = id_list()


class ApplicationCreatePayloadSerializer(ApplicationUpdatePayloadSerializer):
    protocol = serializers.IntegerField(min_value=1)


class ItemAnswerPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    text = serializers.CharField(max_length=255, allow_blank=True, default="")
    item = serializers.IntegerField(min_value=1)
    files = FilePayloadSerializer(many=True, default=list)


class OptionAnswerPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    text = serializers.CharField(max_length=255, allow_blank=True, default="")
    item = serializers.IntegerField(min_value=1)
    option = serializers.IntegerField(min_value=1)


class TableAnswerPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    text = serializers.CharField(max_length=255, allow_blank=True, default="")
    item = serializers.IntegerField(min_value=1)
    column = serializers.IntegerField(min_value=1)


class ItemAnswerGroupPayloadSerializer(StrictSerializer):
    id = serializers.IntegerField(min_value=1, required=False)
    item_answers = ItemAnswerPayloadSerializer(many=True, default=list)
    option_answers = OptionAnswerPayloadSerializer(many=True, default=list)
    table_answers = TableAnswerPayloadSerializer(many=True, default=list)


class ApplicationAnswerUpdatePayloadSerializer(StrictSerializer):
    date = serializers.DateTimeField()
    address = serializers.IntegerField(min_value=1, allow_null=True, default=None)
    item_answer_groups = ItemAnswerGroupPayloadSerializer(many=True)


class ApplicationAnswerCreatePayloadSerializer(ApplicationAnswerUpdatePayloadSerializer):
    application = serializers.IntegerField(min_value=1)


# User payloads


class UserPayloadSerializer(StrictSerializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, min_length=8)
    name = serializers.CharField(max_length=255, allow_blank=True, default="")
    role = serializers.ChoiceField(choices=User.Role.choices)
    institution = serializers.IntegerField(min_value=1, allow_null=True, default=None)
    classrooms = id_list()
    accepted_terms = serializers.BooleanField(default=False)


# Read representations


class InstitutionRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Institution
        fields = ["id", "name"]


class ClassroomRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Classroom
        fields = ["id", "name"]


class UserRefSerializer(serializers.ModelSerializer):
    institution = InstitutionRefSerializer(read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "institution"]


class UserSerializer(serializers.ModelSerializer):
    institution = InstitutionRefSerializer(read_only=True)
    classrooms = ClassroomRefSerializer(many=True, read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "role",
            "date_joined",
            "updated_at",
            "accepted_terms",
            "institution",
            "classrooms",
        ]


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ["id", "city", "state", "country"]


class FileSerializer(serializers.ModelSerializer):
    class Meta:
        model = File
        fields = ["id", "path", "description"]


class ItemOptionSerializer(serializers.ModelSerializer):
    files = FileSerializer(many=True, read_only=True)

    class Meta:
        model = ItemOption
        fields = ["id", "text", "placement", "files"]


class ItemValidationSerializer(serializers.ModelSerializer):
    class Meta:
        model = ItemValidation
        fields = ["id", "type", "argument", "custom_message"]


class ItemSerializer(serializers.ModelSerializer):
    files = FileSerializer(many=True, read_only=True)
    item_validations = ItemValidationSerializer(many=True, read_only=True)
    item_options = ItemOptionSerializer(many=True, read_only=True)

    class Meta:
        model = Item
        fields = ["id", "text", "description", "type", "placement", "enabled", "files", "item_validations", "item_options"]


class TableColumnSerializer(serializers.ModelSerializer):
    class Meta:
        model = TableColumn
        fields = ["id", "text", "placement"]


class DependencySerializer(serializers.ModelSerializer):
    class Meta:
        model = PageDependencyRule
        fields = ["id", "type", "argument", "custom_message", "item"]


class ItemGroupSerializer(serializers.ModelSerializer):
    items = ItemSerializer(many=True, read_only=True)
    table_columns = TableColumnSerializer(many=True, read_only=True)
    dependencies = DependencySerializer(many=True, read_only=True)

    class Meta:
        model = ItemGroup
        fields = ["id", "placement", "is_repeatable", "type", "items", "table_columns", "dependencies"]


class PageSerializer(serializers.ModelSerializer):
    item_groups = ItemGroupSerializer(many=True, read_only=True)
    dependencies = DependencySerializer(many=True, read_only=True)

    class Meta:
        model = Page
        fields = ["id", "placement", "type", "item_groups", "dependencies"]


class ProtocolSerializer(serializers.ModelSerializer):
    creator = UserRefSerializer(read_only=True)
    managers = UserRefSerializer(many=True, read_only=True)
    appliers = UserRefSerializer(many=True, read_only=True)
    viewers_user = UserRefSerializer(many=True, read_only=True)
    viewers_classroom = ClassroomRefSerializer(many=True, read_only=True)
    answers_viewers_user = UserRefSerializer(many=True, read_only=True)
    answers_viewers_classroom = ClassroomRefSerializer(many=True, read_only=True)
    pages = PageSerializer(many=True, read_only=True)

    class Meta:
        model = Protocol
        fields = [
            "id",
            "created_at",
            "updated_at",
            "title",
            "description",
            "enabled",
            "replicable",
            "visibility",
            "applicability",
            "answers_visibility",
            "creator",
            "managers",
            "appliers",
            "viewers_user",
            "viewers_classroom",
            "answers_viewers_user",
            "answers_viewers_classroom",
            "pages",
        ]


class ProtocolRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Protocol
        fields = ["id", "title", "description"]


class ApplicationSerializer(serializers.ModelSerializer):
    protocol = ProtocolRefSerializer(read_only=True)
    applier = UserRefSerializer(read_only=True)
    viewers_user = UserRefSerializer(many=True, read_only=True)
    viewers_classroom = ClassroomRefSerializer(many=True, read_only=True)
    answers_viewers_user = UserRefSerializer(many=True, read_only=True)
    answers_viewers_classroom = ClassroomRefSerializer(many=True, read_only=True)

    class Meta:
        model = Application
        fields = [
            "id",
            "created_at",
            "updated_at",
            "visibility",
            "answers_visibility",
            "protocol",
            "applier",
            "viewers_user",
            "viewers_classroom",
            "answers_viewers_user",
            "answers_viewers_classroom",
        ]


class ItemAnswerSerializer(serializers.ModelSerializer):
    files = FileSerializer(many=True, read_only=True)

    class Meta:
        model = ItemAnswer
        fields = ["id", "text", "item", "files"]


class OptionAnswerSerializer(serializers.ModelSerializer):
    class Meta:
        model = OptionAnswer
        fields = ["id", "text", "item", "option"]


class TableAnswerSerializer(serializers.ModelSerializer):
    class Meta:
        model = TableAnswer
        fields = ["id", "text", "item", "column"]


class ItemAnswerGroupSerializer(serializers.ModelSerializer):
    item_answers = ItemAnswerSerializer(many=True, read_only=True)
    option_answers = OptionAnswerSerializer(many=True, read_only=True)
    table_answers = TableAnswerSerializer(many=True, read_only=True)

    class Meta:
        model = ItemAnswerGroup
        fields = ["id", "item_answers", "option_answers", "table_answers"]


class ApplicationAnswerSerializer(serializers.ModelSerializer):
    user = UserRefSerializer(read_only=True)
    address = AddressSerializer(read_only=True)
    item_answer_groups = ItemAnswerGroupSerializer(many=True, read_only=True)

    class Meta:
        model = ApplicationAnswer
        fields = ["id", "created_at", "updated_at", "date", "approved", "application", "user", "address", "item_answer_groups"]
