from django.contrib import admin

from .models import File, Item, ItemGroup, Page, Protocol


class PageInline(admin.TabularInline):
    model = Page
    extra = 0


@admin.register(Protocol)
class ProtocolAdmin(admin.ModelAdmin):
    list_display = ("title", "creator", "enabled", "visibility", "applicability", "created_at")
    list_filter = ("enabled", "visibility", "applicability")
    search_fields = ("title", "description")
    filter_horizontal = (
        "managers",
        "appliers",
        "viewers_user",
        "viewers_classroom",
        "answers_viewers_user",
        "answers_viewers_classroom",
    )
    inlines = [PageInline]


@admin.register(ItemGroup)
class ItemGroupAdmin(admin.ModelAdmin):
    list_display = ("id", "page", "placement", "type", "is_repeatable")


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("text", "group", "type", "placement", "enabled")
    list_filter = ("type",)


@admin.register(File)
class FileAdmin(admin.ModelAdmin):
    list_display = ("path", "item", "item_option", "item_answer")
