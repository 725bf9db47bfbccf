# prep_core/notifications/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from prep_core.common.api.pagination import PageRequest, page_response, paginate
from prep_core.common.permissions import NotificationPermission
from prep_core.notifications.api.serializers import NotificationSerializer
from prep_core.notifications.selectors import notifications_qs
from prep_core.notifications.services import NotificationService

SORT_FIELDS = ("created_at", "notify_at")


class NotificationViewSet(viewsets.GenericViewSet):
    permission_classes = [NotificationPermission]
    serializer_class = NotificationSerializer
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return notifications_qs(user_id=self.request.user.id)

    @extend_schema(
        responses={200: NotificationSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="is_read", type=bool, required=False),
            OpenApiParameter(name="page", type=int, required=False),
            OpenApiParameter(name="size", type=int, required=False),
            OpenApiParameter(name="sort", type=str, required=False),
        ],
        tags=["Notifications"],
    )
    def list(self, request):
        page_request = PageRequest.from_request(request, sort_fields=SORT_FIELDS, default_sort="created_at,desc")
        qs = self.get_queryset()
        is_read = request.query_params.get("is_read")
        if is_read in ("true", "false"):
            qs = qs.filter(read_at__isnull=(is_read == "false"))
        page = paginate(qs.order_by(page_request.order_by, "-id"), page_request.page, page_request.size)
        return page_response(page, NotificationSerializer)

    @extend_schema(responses={200: NotificationSerializer}, tags=["Notifications"])
    def retrieve(self, request, pk=None):
        notif = self.get_queryset().filter(pk=pk).first()
        if notif is None:
            raise NotFound("Notification not found.")
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: NotificationSerializer}, tags=["Notifications"])
    @action(methods=["POST"], detail=True, url_path="mark-read")
    def mark_read(self, request, pk=None):
        notif = NotificationService.mark_read(user_id=request.user.id, notification_id=int(pk))
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)
