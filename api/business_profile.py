"""/api/business-profile: the owner's issuer details and branding images."""

from uuid import UUID

from fastapi import APIRouter, File, Request, UploadFile

from api.base import success_response
from core.models import BusinessProfileUpdate, ImageKind


def create_business_profile_router(services: dict) -> APIRouter:
    router = APIRouter()

    profile_svc = services["business_profile"]
    media = services["media"]

    @router.get("/business-profile/me")
    async def get_my_profile(request: Request):
        profile = profile_svc.get_for_owner()
        data = profile.model_dump(mode="json") if profile else None
        return success_response(data, getattr(request.state, "request_id", None)).model_dump(mode="json")

    @router.post("/business-profile")
    async def save_profile(request: Request, body: BusinessProfileUpdate):
        """Create on first save, partial update afterwards."""
        profile = profile_svc.save(body)
        return success_response(
            profile.model_dump(mode="json"), getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    @router.put("/business-profile/{profile_id}")
    async def update_profile(request: Request, profile_id: UUID, body: BusinessProfileUpdate):
        profile = profile_svc.update(profile_id, body)
        return success_response(
            profile.model_dump(mode="json"), getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    @router.post("/business-profile/{profile_id}/images/{kind}")
    async def upload_profile_image(
        request: Request,
        profile_id: UUID,
        kind: ImageKind,
        file: UploadFile = File(...),
    ):
        # Raises before upload if the profile is missing or not ours
        profile_svc.get_by_id(profile_id)

        data = await file.read()
        url = media.upload(data, kind.folder, file.filename, file.content_type)
        profile = profile_svc.set_image(profile_id, kind, url)
        return success_response(
            profile.model_dump(mode="json"), getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    return router
