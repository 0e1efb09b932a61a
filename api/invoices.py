"""/api/invoices: invoice CRUD, sending, dashboard summary and images."""

from uuid import UUID

from fastapi import APIRouter, File, Query, Request, UploadFile

from api.base import success_response
from core.models import ImageKind, InvoiceDraft, InvoiceStatus, InvoiceUpdate


def create_invoices_router(services: dict) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]
    media = services["media"]

    def _request_id(request: Request) -> str | None:
        return getattr(request.state, "request_id", None)

    def _require(invoice_id: UUID):
        invoice = invoice_svc.get_by_id(invoice_id)
        if invoice is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        return invoice

    # Registered before /invoices/{identifier} so "summary" is not read as an identifier
    @router.get("/invoices/summary")
    async def invoice_summary(request: Request):
        summaries = invoice_svc.summary()
        return success_response(
            [s.model_dump(mode="json") for s in summaries],
            _request_id(request),
        ).model_dump(mode="json")

    @router.get("/invoices")
    async def list_invoices(
        request: Request,
        status: InvoiceStatus | None = Query(None),
        invoice_number: str | None = Query(None),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        invoices = invoice_svc.list_for_owner(
            status=status,
            invoice_number=invoice_number,
            limit=limit,
            offset=offset,
        )
        return success_response(
            [i.model_dump(mode="json") for i in invoices],
            _request_id(request),
        ).model_dump(mode="json")

    @router.post("/invoices", status_code=201)
    async def create_invoice(
        request: Request,
        body: InvoiceDraft,
        draft: bool = Query(False, description="Save without validation"),
    ):
        invoice = invoice_svc.create(body, strict=not draft)
        return success_response(
            invoice.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.get("/invoices/{identifier}")
    async def get_invoice(request: Request, identifier: str):
        invoice = invoice_svc.get(identifier)
        if invoice is None:
            raise ValueError(f"Invoice {identifier} not found")
        return success_response(
            invoice.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.put("/invoices/{invoice_id}")
    async def update_invoice(
        request: Request,
        invoice_id: UUID,
        body: InvoiceUpdate,
        draft: bool = Query(False, description="Save without validation"),
    ):
        invoice = invoice_svc.update(invoice_id, body, strict=not draft)
        return success_response(
            invoice.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.delete("/invoices/{invoice_id}")
    async def delete_invoice(request: Request, invoice_id: UUID):
        if not invoice_svc.delete(invoice_id):
            raise ValueError(f"Invoice {invoice_id} not found")
        return success_response({"deleted": True}, _request_id(request)).model_dump(mode="json")

    @router.post("/invoices/{invoice_id}/send")
    async def send_invoice(request: Request, invoice_id: UUID):
        invoice = invoice_svc.send(invoice_id)
        return success_response(
            invoice.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    @router.get("/invoices/{invoice_id}/history")
    async def invoice_history(request: Request, invoice_id: UUID):
        entries = invoice_svc.history(invoice_id)
        return success_response(entries, _request_id(request)).model_dump(mode="json")

    @router.post("/invoices/{invoice_id}/images/{kind}")
    async def upload_invoice_image(
        request: Request,
        invoice_id: UUID,
        kind: ImageKind,
        file: UploadFile = File(...),
    ):
        # Ownership check before anything is written to storage
        _require(invoice_id)

        data = await file.read()
        url = media.upload(data, kind.folder, file.filename, file.content_type)
        invoice = invoice_svc.set_image(invoice_id, kind, url)
        return success_response(
            invoice.model_dump(mode="json"), _request_id(request)
        ).model_dump(mode="json")

    return router
