# lab_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter


class LabAutoSchema(AutoSchema):
    """
    Global OpenAPI improvements for the lab API:

    - Adds the optional X-Request-Id header (echoed back in error envelopes)
    - Tags operations by owning app (orders, lab, ...) instead of URL prefix
    """

    REQUEST_ID_HEADER = OpenApiParameter(
        name="X-Request-Id",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Optional correlation id; returned as error.request_id on failures.",
    )

    def _is_schema_endpoint(self) -> bool:
        view = getattr(self, "view", None)
        if view is None:
            return False
        return view.__class__.__name__ in {"SpectacularAPIView", "SpectacularSwaggerView"}

    def get_tags(self):
        view = getattr(self, "view", None)
        module = (view.__class__.__module__ or "") if view is not None else ""
        # lab_core.<app>.api.views -> <app>
        parts = module.split(".")
        if len(parts) >= 2 and parts[0] == "lab_core":
            return [parts[1]]
        return super().get_tags()

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])

        if self._is_schema_endpoint():
            return params

        if not any(p.name.lower() == "x-request-id" for p in params):
            params.append(self.REQUEST_ID_HEADER)

        return params
