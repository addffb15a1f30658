from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response

from picce_app.applications.models import Application, ApplicationAnswer
from picce_app.applications.permissions import check_application_answer_authorization, check_application_authorization
from picce_app.applications.upsert import (
    approve_application_answer,
    create_application,
    create_application_answer,
    delete_application,
    delete_application_answer,
    update_application,
    update_application_answer,
)
from picce_app.core.permissions import Principal, check_user_authorization
from picce_app.core.users import create_user, delete_user, update_user
from picce_app.protocols.models import Protocol
from picce_app.protocols.permissions import check_protocol_authorization
from picce_app.protocols.upsert import create_protocol, delete_protocol, update_protocol

from . import presenters
from .serializers import (
    ApplicationAnswerCreatePayloadSerializer,
    ApplicationAnswerUpdatePayloadSerializer,
    ApplicationCreatePayloadSerializer,
    ApplicationUpdatePayloadSerializer,
    ProtocolPayloadSerializer,
    UserPayloadSerializer,
)
from .uploads import request_payload, stored_uploads

User = get_user_model()


def _validated(serializer_class, data, **kwargs) -> dict:
    serializer = serializer_class(data=data, **kwargs)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _reply(message: str, data, status_code: int = status.HTTP_200_OK) -> Response:
    return Response({"message": message, "data": data}, status=status_code)


class PrincipalMixin:
    lookup_value_regex = r"\d+"

    @property
    def principal(self) -> Principal:
        if not hasattr(self, "_principal"):
            self._principal = Principal.from_user(self.request.user)
        return self._principal


class ProtocolViewSet(PrincipalMixin, viewsets.ViewSet):
    """Protocol trees. Writes accept JSON or multipart with a ``payload`` field."""

    permission_classes = [permissions.IsAuthenticated]

    def create(self, request):
        check_protocol_authorization(self.principal, [], "create")
        with stored_uploads(request) as uploads:
            data = _validated(ProtocolPayloadSerializer, request_payload(request))
            protocol = create_protocol(request.user, data, uploads)
        return _reply(
            "Protocol created.", presenters.present_written_protocol(self.principal, protocol.id), status.HTTP_201_CREATED
        )

    def list(self, request):
        protocols = presenters.present_protocols(self.principal, presenters.protocols_queryset())
        return _reply("All visible protocols found.", protocols)

    @action(detail=False, methods=["get"])
    def my(self, request):
        check_protocol_authorization(self.principal, [], "get_my")
        queryset = presenters.protocols_queryset().filter(Q(creator=request.user) | Q(managers=request.user)).distinct()
        return _reply("All your protocols found.", presenters.present_protocols(self.principal, queryset))

    @action(detail=False, methods=["get"], url_path="all")
    def all_protocols(self, request):
        check_protocol_authorization(self.principal, [], "get_all")
        return _reply("All protocols found.", presenters.present_protocols(self.principal, presenters.protocols_queryset()))

    def retrieve(self, request, pk=None):
        check_protocol_authorization(self.principal, [int(pk)], "get")
        return _reply("Protocol found.", presenters.present_protocol(self.principal, int(pk)))

    def update(self, request, pk=None):
        check_protocol_authorization(self.principal, [int(pk)], "update")
        with stored_uploads(request) as uploads:
            data = _validated(ProtocolPayloadSerializer, request_payload(request))
            protocol = update_protocol(Protocol.objects.select_related("creator").get(id=pk), data, uploads)
        return _reply("Protocol updated.", presenters.present_written_protocol(self.principal, protocol.id))

    def destroy(self, request, pk=None):
        check_protocol_authorization(self.principal, [int(pk)], "delete")
        delete_protocol(Protocol.objects.get(id=pk))
        return _reply("Protocol deleted.", {"id": int(pk)})

    @action(detail=True, methods=["get"], url_path="with-answers")
    def with_answers(self, request, pk=None):
        check_protocol_authorization(self.principal, [int(pk)], "get_with_answers")
        return _reply("Protocol with answers found.", presenters.present_protocol(self.principal, int(pk), with_answers=True))


class ApplicationViewSet(PrincipalMixin, viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def create(self, request):
        check_application_authorization(self.principal, [], "create")
        data = _validated(ApplicationCreatePayloadSerializer, request.data)
        check_protocol_authorization(self.principal, [data["protocol"]], "apply")
        application = create_application(request.user, data)
        return _reply(
            "Application created.", presenters.present_application(self.principal, application.id), status.HTTP_201_CREATED
        )

    def list(self, request):
        applications = presenters.present_applications(self.principal, presenters.applications_queryset())
        return _reply("All visible applications found.", applications)

    @action(detail=False, methods=["get"])
    def my(self, request):
        check_application_authorization(self.principal, [], "get_my")
        queryset = presenters.applications_queryset().filter(applier=request.user)
        return _reply("All your applications found.", presenters.present_applications(self.principal, queryset))

    @action(detail=False, methods=["get"], url_path="all")
    def all_applications(self, request):
        check_application_authorization(self.principal, [], "get_all")
        applications = presenters.present_applications(self.principal, presenters.applications_queryset())
        return _reply("All applications found.", applications)

    def retrieve(self, request, pk=None):
        check_application_authorization(self.principal, [int(pk)], "get")
        return _reply("Application found.", presenters.present_application(self.principal, int(pk)))

    def update(self, request, pk=None):
        check_application_authorization(self.principal, [int(pk)], "update")
        data = _validated(ApplicationUpdatePayloadSerializer, request.data)
        application = update_application(Application.objects.get(id=pk), data)
        return _reply("Application updated.", presenters.present_application(self.principal, application.id))

    def destroy(self, request, pk=None):
        check_application_authorization(self.principal, [int(pk)], "delete")
        delete_application(Application.objects.get(id=pk))
        return _reply("Application deleted.", {"id": int(pk)})

    @action(detail=True, methods=["get"], url_path="with-answers")
    def with_answers(self, request, pk=None):
        check_application_authorization(self.principal, [int(pk)], "get_with_answers")
        application = presenters.present_application(self.principal, int(pk), with_answers=True)
        return _reply("Application with answers found.", application)


class ApplicationAnswerViewSet(PrincipalMixin, viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def create(self, request):
        with stored_uploads(request) as uploads:
            data = _validated(ApplicationAnswerCreatePayloadSerializer, request_payload(request))
            check_application_answer_authorization(self.principal, [], "create", [data["application"]])
            application = Application.objects.select_related("protocol").get(id=data["application"])
            answer = create_application_answer(request.user, application, data, uploads)
        return _reply(
            "Application answer created.", presenters.present_answer(self.principal, answer.id), status.HTTP_201_CREATED
        )

    @action(detail=False, methods=["get"])
    def my(self, request):
        check_application_answer_authorization(self.principal, [], "get_my")
        queryset = presenters.answers_queryset().filter(user=request.user)
        return _reply("All your application answers found.", presenters.present_answers(self.principal, queryset))

    @action(detail=False, methods=["get"], url_path="all")
    def all_answers(self, request):
        check_application_answer_authorization(self.principal, [], "get_all")
        answers = presenters.present_answers(self.principal, presenters.answers_queryset())
        return _reply("All application answers found.", answers)

    def retrieve(self, request, pk=None):
        check_application_answer_authorization(self.principal, [int(pk)], "get")
        return _reply("Application answer found.", presenters.present_answer(self.principal, int(pk)))

    def update(self, request, pk=None):
        check_application_answer_authorization(self.principal, [int(pk)], "update")
        with stored_uploads(request) as uploads:
            data = _validated(ApplicationAnswerUpdatePayloadSerializer, request_payload(request))
            answer = ApplicationAnswer.objects.select_related("application").get(id=pk)
            answer = update_application_answer(answer, data, uploads)
        return _reply("Application answer updated.", presenters.present_answer(self.principal, answer.id))

    def destroy(self, request, pk=None):
        check_application_answer_authorization(self.principal, [int(pk)], "delete")
        delete_application_answer(ApplicationAnswer.objects.get(id=pk))
        return _reply("Application answer deleted.", {"id": int(pk)})

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        check_application_answer_authorization(self.principal, [int(pk)], "approve")
        answer = approve_application_answer(ApplicationAnswer.objects.get(id=pk))
        return _reply("Application answer approved.", presenters.present_answer(self.principal, answer.id))


class UserViewSet(PrincipalMixin, viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def create(self, request):
        check_user_authorization(self.principal, [], "create")
        data = _validated(UserPayloadSerializer, request.data)
        user = create_user(self.principal, request.user, data)
        return _reply("User created.", presenters.present_user(self.principal, user.id), status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        check_user_authorization(self.principal, [int(pk)], "get")
        return _reply("User found.", presenters.present_user(self.principal, int(pk)))

    def update(self, request, pk=None):
        check_user_authorization(self.principal, [int(pk)], "update")
        data = _validated(UserPayloadSerializer, request.data, partial=True)
        user = update_user(self.principal, User.objects.get(id=pk), data)
        return _reply("User updated.", presenters.present_user(self.principal, user.id))

    def destroy(self, request, pk=None):
        check_user_authorization(self.principal, [int(pk)], "delete")
        delete_user(User.objects.get(id=pk))
        return _reply("User deleted.", {"id": int(pk)})


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def healthcheck(request):
    return Response({"status": "ok"})
