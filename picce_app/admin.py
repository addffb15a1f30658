from django.contrib.admin import AdminSite
from django.contrib.admin.apps import AdminConfig


class PicceAdminSite(AdminSite):
    site_header = "PICCE Admin"
    site_title = "PICCE Admin"
    index_title = "Administration"

    def has_permission(self, request):  # type: ignore[override]
        # Restrict access strictly to active superusers
        return bool(
            request.user and request.user.is_active and request.user.is_superuser
        )


class PicceAdminConfig(AdminConfig):
    default_site = "picce_app.admin.PicceAdminSite"
