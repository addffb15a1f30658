from django.contrib import admin

from .models import Application, ApplicationAnswer


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("id", "protocol", "applier", "visibility", "created_at")
    list_filter = ("visibility",)
    filter_horizontal = ("viewers_user", "viewers_classroom", "answers_viewers_user", "answers_viewers_classroom")


@admin.register(ApplicationAnswer)
class ApplicationAnswerAdmin(admin.ModelAdmin):
    list_display = ("id", "application", "user", "date", "approved")
    list_filter = ("approved",)
