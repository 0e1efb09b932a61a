"""POST /api/ai/generate: draft an invoice from a free-form description."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from api.base import success_response
from core.config import InvoiceConfig
from core.normalization import apply_business_profile


class GenerateRequest(BaseModel):
    prompt: str = Field(..., max_length=10000)
    save: bool = False


def create_ai_router(services: dict, config: InvoiceConfig) -> APIRouter:
    router = APIRouter()

    extractor = services["extractor"]
    invoice_svc = services["invoice"]
    profile_svc = services["business_profile"]

    @router.post("/ai/generate")
    async def generate_invoice(request: Request, body: GenerateRequest):
        """
        Extract an invoice draft. With save, the draft is stored as-is
        (no validation) so the user can finish it in the editor.
        """
        extracted = extractor.extract_invoice(body.prompt)
        draft = apply_business_profile(
            extracted.draft, profile_svc.get_for_owner(), config.default_tax_percent
        )

        if body.save:
            invoice = invoice_svc.create(draft, strict=False)
            data = {"saved": True, "invoice": invoice.model_dump(mode="json")}
        else:
            data = {"saved": False, "invoice": draft.model_dump(mode="json")}

        data["model"] = extracted.model
        return success_response(
            data, getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    return router
