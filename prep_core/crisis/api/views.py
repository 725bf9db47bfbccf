# prep_core/crisis/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from prep_core.common.api.pagination import PageRequest, page_response
from prep_core.common.permissions import CrisisEventPermission
from prep_core.crisis.api.serializers import (
    CrisisEventChangeSerializer,
    CrisisEventCreateSerializer,
    CrisisEventPatchSerializer,
    CrisisEventPreviewSerializer,
    CrisisEventSerializer,
    NearestQuerySerializer,
    SearchQuerySerializer,
)
from prep_core.crisis.filters import CrisisEventFilter
from prep_core.crisis.selectors import CrisisEventSelectors
from prep_core.crisis.services import CrisisEventService

EVENT_SORT_FIELDS = ("start_time", "created_at", "updated_at", "name", "id")
CHANGE_SORT_FIELDS = ("created_at",)

PAGE_PARAMETERS = [
    OpenApiParameter(name="page", type=int, required=False, description="Zero-based page number"),
    OpenApiParameter(name="size", type=int, required=False, description="Page size (max 200)"),
    OpenApiParameter(name="sort", type=str, required=False, description="<field>[,asc|desc]"),
]


class CrisisEventViewSet(viewsets.GenericViewSet):
    """
    Thin API layer:
    - serializers validate request shape
    - writes go to CrisisEventService, reads to CrisisEventSelectors
    - every list response uses the shared paged contract
    """

    permission_classes = [CrisisEventPermission]
    serializer_class = CrisisEventSerializer
    filterset_class = CrisisEventFilter
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return CrisisEventSelectors.events_qs()

    def _page_request(self, request, *, sort_fields=EVENT_SORT_FIELDS, default_sort="start_time,desc") -> PageRequest:
        return PageRequest.from_request(request, sort_fields=sort_fields, default_sort=default_sort)

    # -------------------------
    # Writes (admin-tier)
    # -------------------------
    @extend_schema(request=CrisisEventCreateSerializer, responses={201: CrisisEventSerializer}, tags=["Crisis events"])
    def create(self, request):
        ser = CrisisEventCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        event = CrisisEventService.create(data=ser.to_input(), actor_user=request.user)
        return Response(CrisisEventSerializer(event).data, status=status.HTTP_201_CREATED)

    def _update(self, request, pk):
        ser = CrisisEventPatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        event = CrisisEventService.update(event_id=int(pk), patch=ser.to_patch(), actor_user=request.user)
        if event is None:
            raise NotFound("Crisis event or referenced scenario theme not found.")
        event = CrisisEventSelectors.get_event(event_id=event.pk)
        return Response(CrisisEventSerializer(event).data, status=status.HTTP_200_OK)

    @extend_schema(request=CrisisEventPatchSerializer, responses={200: CrisisEventSerializer}, tags=["Crisis events"])
    def partial_update(self, request, pk=None):
        return self._update(request, pk)

    @extend_schema(request=CrisisEventPatchSerializer, responses={200: CrisisEventSerializer}, tags=["Crisis events"])
    def update(self, request, pk=None):
        # PUT keeps partial semantics: omitted fields stay as they are.
        return self._update(request, pk)

    @extend_schema(request=None, responses={200: CrisisEventSerializer}, tags=["Crisis events"])
    @action(methods=["POST"], detail=True, url_path="deactivate")
    def deactivate(self, request, pk=None):
        event = CrisisEventService.deactivate(event_id=int(pk), actor_user=request.user)
        return Response(CrisisEventSerializer(event).data, status=status.HTTP_200_OK)

    # -------------------------
    # Public reads
    # -------------------------
    @extend_schema(responses={200: CrisisEventSerializer}, tags=["Crisis events"])
    def retrieve(self, request, pk=None):
        event = CrisisEventSelectors.get_event(event_id=int(pk))
        return Response(CrisisEventSerializer(event).data, status=status.HTTP_200_OK)

    @extend_schema(responses={200: CrisisEventSerializer(many=True)}, parameters=PAGE_PARAMETERS, tags=["Crisis events"])
    def list(self, request):
        page_request = self._page_request(request)
        qs = self.filter_queryset(self.get_queryset())
        page = CrisisEventSelectors.list_events(page_request=page_request, queryset=qs)
        return page_response(page, CrisisEventSerializer)

    @extend_schema(
        responses={200: CrisisEventPreviewSerializer(many=True)},
        parameters=PAGE_PARAMETERS,
        tags=["Crisis events"],
    )
    @action(methods=["GET"], detail=False, url_path="previews")
    def previews(self, request):
        page = CrisisEventSelectors.all_previews(page_request=self._page_request(request))
        return page_response(page, CrisisEventPreviewSerializer)

    @extend_schema(
        responses={200: CrisisEventPreviewSerializer(many=True)},
        parameters=PAGE_PARAMETERS,
        tags=["Crisis events"],
    )
    @action(methods=["GET"], detail=False, url_path="inactive-previews")
    def inactive_previews(self, request):
        page = CrisisEventSelectors.inactive_previews(page_request=self._page_request(request))
        return page_response(page, CrisisEventPreviewSerializer)

    @extend_schema(
        responses={200: CrisisEventChangeSerializer(many=True)},
        parameters=PAGE_PARAMETERS,
        tags=["Crisis events"],
    )
    @action(methods=["GET"], detail=True, url_path="changes")
    def changes(self, request, pk=None):
        page_request = self._page_request(request, sort_fields=CHANGE_SORT_FIELDS, default_sort="created_at,desc")
        page = CrisisEventSelectors.list_changes(event_id=int(pk), page_request=page_request)
        return page_response(page, CrisisEventChangeSerializer)

    @extend_schema(
        responses={200: CrisisEventPreviewSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="name", type=str, required=False),
            OpenApiParameter(name="is_active", type=bool, required=False),
            *PAGE_PARAMETERS,
        ],
        tags=["Crisis events"],
    )
    @action(methods=["GET"], detail=False, url_path="search")
    def search(self, request):
        q = SearchQuerySerializer(data=request.query_params.dict())
        q.is_valid(raise_exception=True)
        page = CrisisEventSelectors.search_by_name(
            term=q.validated_data["name"],
            is_active=q.validated_data["is_active"],
            page_request=self._page_request(request, sort_fields=("start_time",)),
        )
        return page_response(page, CrisisEventPreviewSerializer)

    @extend_schema(
        responses={200: CrisisEventSerializer},
        parameters=[
            OpenApiParameter(name="lat", type=float, required=True),
            OpenApiParameter(name="lon", type=float, required=True),
            OpenApiParameter(name="severity", type=str, required=False),
        ],
        tags=["Crisis events"],
    )
    @action(methods=["GET"], detail=False, url_path="nearest")
    def nearest(self, request):
        q = NearestQuerySerializer(data=request.query_params.dict())
        q.is_valid(raise_exception=True)
        event = CrisisEventSelectors.nearest_active_event(
            latitude=q.validated_data["lat"],
            longitude=q.validated_data["lon"],
            severity=q.validated_data.get("severity"),
        )
        if event is None:
            raise NotFound("No active crisis event found.")
        return Response(CrisisEventSerializer(event).data, status=status.HTTP_200_OK)

    # -------------------------
    # Caller-specific reads
    # -------------------------
    @extend_schema(responses={200: CrisisEventSerializer(many=True)}, parameters=PAGE_PARAMETERS, tags=["Crisis events"])
    @action(methods=["GET"], detail=False, url_path="affecting-me")
    def affecting_me(self, request):
        page = CrisisEventSelectors.affecting_user(user=request.user, page_request=self._page_request(request))
        return page_response(page, CrisisEventSerializer)

    @extend_schema(
        responses={200: CrisisEventPreviewSerializer(many=True)},
        parameters=PAGE_PARAMETERS,
        tags=["Crisis events"],
    )
    @action(methods=["GET"], detail=False, url_path="affecting-me/previews")
    def affecting_me_previews(self, request):
        page = CrisisEventSelectors.affecting_user_previews(user=request.user, page_request=self._page_request(request))
        return page_response(page, CrisisEventPreviewSerializer)
