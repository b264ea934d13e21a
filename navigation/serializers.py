# backend/navigation/serializers.py
from rest_framework import serializers

from .models import NavigationItem


class NavigationItemSerializer(serializers.ModelSerializer):
    url = serializers.CharField(allow_blank=True, allow_null=True, required=False)
    parentId = serializers.PrimaryKeyRelatedField(
        source="parent",
        queryset=NavigationItem.objects.all(),
        allow_null=True,
        required=False,
    )
    imageUrl = serializers.CharField(
        source="image_url", allow_blank=True, allow_null=True, required=False
    )
    isActive = serializers.BooleanField(source="is_active", required=False)

    class Meta:
        model = NavigationItem
        fields = [
            "id",
            "label",
            "url",
            "type",
            "parentId",
            "position",
            "icon",
            "imageUrl",
            "description",
            "badge",
            "isActive",
            "scope",
        ]

    def validate(self, attrs):
        instance = self.instance
        scope = attrs.get("scope", getattr(instance, "scope", NavigationItem.SCOPE_HEADER))
        item_type = attrs.get("type", getattr(instance, "type", NavigationItem.TYPE_MAIN))
        parent = attrs.get("parent", getattr(instance, "parent", None))

        errors = NavigationItem.placement_errors(
            scope, item_type, parent, instance.pk if instance is not None else None
        )
        if errors:
            raise serializers.ValidationError(
                {"parentId" if key == "parent" else key: message for key, message in errors.items()}
            )
        return attrs


class NavigationNodeSerializer(serializers.Serializer):
    """Read-only view of the nested dicts produced by ``build_tree``."""

    id = serializers.IntegerField()
    label = serializers.CharField()
    url = serializers.CharField(allow_null=True)
    type = serializers.CharField()
    parentId = serializers.IntegerField(source="parent_id", allow_null=True)
    position = serializers.IntegerField()
    icon = serializers.CharField(allow_null=True)
    imageUrl = serializers.CharField(source="image_url", allow_null=True)
    description = serializers.CharField(allow_null=True)
    badge = serializers.CharField(allow_null=True)
    isActive = serializers.BooleanField(source="is_active")
    scope = serializers.CharField()
    children = serializers.SerializerMethodField()

    def get_children(self, obj):
        return NavigationNodeSerializer(
            obj.get("children", []), many=True, context=self.context
        ).data


class ReorderEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    position = serializers.IntegerField(min_value=0)
    parentId = serializers.IntegerField(allow_null=True, required=False)

    def to_update(self, data):
        update = {"id": data["id"], "position": data["position"]}
        if "parentId" in data:
            update["parent_id"] = data["parentId"]
        return update


class BulkReorderSerializer(serializers.Serializer):
    items = ReorderEntrySerializer(many=True, allow_empty=False)

    def validate_items(self, value):
        ids = [entry["id"] for entry in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Each item may only appear once.")
        return value

    def get_updates(self):
        entry = ReorderEntrySerializer()
        return [entry.to_update(data) for data in self.validated_data["items"]]


class MoveSerializer(serializers.Serializer):
    activeId = serializers.IntegerField()
    overId = serializers.IntegerField()
    scope = serializers.ChoiceField(choices=NavigationItem.SCOPE_CHOICES)
    expanded = serializers.ListField(
        child=serializers.IntegerField(), required=False, default=list
    )
