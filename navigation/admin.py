# backend/navigation/admin.py
from django.contrib import admin, messages
from django.shortcuts import redirect
from django.template.response import TemplateResponse
from django.urls import path

from .editor import NavigationEditor
from .models import NavigationItem

SESSION_EXPANDED_KEY = "navigation_expanded_{scope}"


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@admin.register(NavigationItem)
class NavigationItemAdmin(admin.ModelAdmin):
    list_display = ("id", "label", "type", "scope", "parent", "position", "is_active")
    list_filter = ("scope", "type", "is_active")
    search_fields = ("label", "url")
    ordering = ("scope", "position")
    list_select_related = ("parent",)
    change_list_template = "admin/navigation/navigationitem/change_list.html"

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        if db_field.name == "parent":
            parent_types = {
                parent_type
                for types in NavigationItem.ALLOWED_PARENT_TYPES.values()
                for parent_type in types
            }
            queryset = NavigationItem.objects.filter(type__in=parent_types)
            match = request.resolver_match
            object_id = _int_or_none(match.kwargs.get("object_id")) if match else None
            item = NavigationItem.objects.filter(pk=object_id).first() if object_id else None
            if item is not None:
                queryset = queryset.filter(
                    scope=item.scope,
                    type__in=NavigationItem.allowed_parent_types(item.scope),
                ).exclude(pk=item.pk)
            kwargs["queryset"] = queryset
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def get_urls(self):
        urls = [
            path(
                "tree/",
                self.admin_site.admin_view(self.tree_view),
                name="navigation_navigationitem_tree",
            ),
        ]
        return urls + super().get_urls()

    def tree_view(self, request):
        scope = request.GET.get("scope") or NavigationItem.SCOPE_HEADER
        if scope not in NavigationItem.SCOPE_TYPES:
            scope = NavigationItem.SCOPE_HEADER
        session_key = SESSION_EXPANDED_KEY.format(scope=scope)

        editor = NavigationEditor(scope, expanded=request.session.get(session_key, []))
        editor.load()

        if request.method == "POST":
            if not self.has_change_permission(request):
                messages.error(request, "You do not have permission to edit navigation.")
                return redirect(request.get_full_path())

            action = request.POST.get("action")
            if action == "toggle":
                item_id = _int_or_none(request.POST.get("id"))
                if item_id is not None:
                    editor.toggle(item_id)
            elif action == "move":
                editor.move(
                    _int_or_none(request.POST.get("active")),
                    _int_or_none(request.POST.get("over")),
                )
            elif action == "delete" and self.has_delete_permission(request):
                editor.delete(_int_or_none(request.POST.get("id")))

            request.session[session_key] = sorted(editor.expanded)
            for level, message in editor.notifications:
                messages.add_message(
                    request,
                    messages.ERROR if level == "error" else messages.SUCCESS,
                    message,
                )
            return redirect(request.get_full_path())

        context = {
            **self.admin_site.each_context(request),
            "opts": self.model._meta,
            "title": "Navigation Manager",
            "scope": scope,
            "scopes": NavigationItem.SCOPE_CHOICES,
            "rows": editor.rows(),
            "expanded": editor.expanded,
            "type_legend": [
                (value, label)
                for value, label in NavigationItem.TYPE_CHOICES
                if value in NavigationItem.allowed_types(scope)
            ],
        }
        return TemplateResponse(request, "admin/navigation/navigationitem/tree.html", context)
