import logging
import secrets
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api_models import (
    FileRecord,
    FormConfig,
    FormListResponse,
    SaveDraftRequest,
    SaveDraftResponse,
    SaveFormResponse,
    SubmissionListResponse,
    SubmitResponse,
    SuccessResponse,
    TokenRequest,
    ValidResponse,
    VerifyPaymentRequest,
)
from .bindings import Bindings, build_bindings
from .config import get_settings
from .drafts import DraftManager
from .exceptions import (
    BadRequestError,
    NotFoundError,
    StoreOperationError,
    UnauthorizedError,
)
from .forms import DEFAULT_FORM_ID, FormConfigManager
from .notifications import Notifier
from .request_context import configure_logging, set_request_id
from .submissions import SubmissionProcessor, upload_first_file
from .verification import VerificationClient

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _last_segment(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1] if path.strip("/") else ""


def create_app(bindings: Bindings | None = None) -> FastAPI:
    if bindings is None:
        bindings = build_bindings(get_settings())
    settings = bindings.settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await bindings.http.aclose()

    app = FastAPI(
        title="Form Builder API",
        version="0.1.0",
        lifespan=lifespan,
        redirect_slashes=False,
    )

    verifier = VerificationClient(
        bindings.http,
        paystack_secret_key=settings.paystack_secret_key,
        recaptcha_secret_key=settings.recaptcha_secret_key,
        turnstile_secret_key=settings.turnstile_secret_key,
    )
    notifier = Notifier(
        bindings.http,
        resend_api_key=settings.resend_api_key,
        email_from=settings.email_from,
        webhook_url=settings.webhook_url,
    )
    forms = FormConfigManager(bindings)
    drafts = DraftManager(bindings)
    submissions = SubmissionProcessor(bindings, verifier, notifier)

    def is_admin(request: Request) -> bool:
        if not settings.api_secret:
            return False
        header = request.headers.get("authorization") or ""
        expected = f"Bearer {settings.api_secret}"
        return secrets.compare_digest(header.encode(), expected.encode())

    def require_admin(request: Request) -> None:
        if not is_admin(request):
            raise UnauthorizedError()

    @app.middleware("http")
    async def route_envelope(request: Request, call_next):
        """Short-circuit preflight, catch handler failures, stamp CORS headers."""
        request_id = set_request_id()
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.exception("Error handling %s %s", request.method, request.url.path)
                response = _error(500, str(exc))
        response.headers.update(CORS_HEADERS)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError):
        logger.info("Invalid request body for %s: %s", request.url.path, exc.errors())
        return _error(400, "Invalid request body")

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):
        return _error(401, str(exc))

    @app.exception_handler(NotFoundError)
    async def missing_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError):
        return _error(400, str(exc))

    @app.exception_handler(StoreOperationError)
    async def store_error_handler(request: Request, exc: StoreOperationError):
        return _error(500, str(exc))

    @app.post("/api/submit-form", response_model=SubmitResponse)
    async def submit_form(request: Request):
        submission_id = await submissions.submit(request)
        return SubmitResponse(submission_id=submission_id)

    @app.get("/api/form-config")
    async def get_form_config(id: str | None = None):
        return await forms.get_form(id or DEFAULT_FORM_ID)

    @app.post("/api/verify-payment", response_model=ValidResponse)
    async def verify_payment(body: VerifyPaymentRequest):
        return ValidResponse(valid=await verifier.verify_payment(body.reference))

    @app.get("/api/forms", response_model=FormListResponse, dependencies=[Depends(require_admin)])
    async def list_forms():
        return FormListResponse(forms=await forms.list_forms())

    @app.post("/api/forms", response_model=SaveFormResponse, dependencies=[Depends(require_admin)])
    async def save_form(body: FormConfig):
        return SaveFormResponse(form_id=await forms.save_form(body))

    @app.put("/api/forms", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
    async def update_form(body: FormConfig):
        await forms.update_form(body)
        return SuccessResponse()

    @app.get("/api/form/{form_path:path}")
    async def get_single_form(form_path: str):
        form_id = _last_segment(form_path)
        if not form_id:
            return PlainTextResponse("Not Found", status_code=404)
        return await forms.get_form(form_id)

    @app.delete("/api/forms/{form_path:path}", response_model=SuccessResponse)
    async def delete_form(form_path: str, request: Request):
        form_id = _last_segment(form_path)
        if not form_id:
            return PlainTextResponse("Not Found", status_code=404)
        require_admin(request)
        await forms.delete_form(form_id)
        return SuccessResponse()

    @app.get(
        "/api/submissions",
        response_model=SubmissionListResponse,
        dependencies=[Depends(require_admin)],
    )
    async def list_submissions():
        return SubmissionListResponse(submissions=await submissions.list_submissions())

    @app.api_route("/api/verify-admin", methods=["GET", "POST"], response_model=ValidResponse)
    async def verify_admin(request: Request):
        if is_admin(request):
            return ValidResponse(valid=True)
        return JSONResponse({"valid": False}, status_code=401)

    @app.post("/api/upload", response_model=FileRecord)
    async def upload(request: Request):
        return await upload_first_file(bindings, request)

    @app.post("/api/save-draft", response_model=SaveDraftResponse)
    async def save_draft(body: SaveDraftRequest):
        return SaveDraftResponse(draft_id=await drafts.save_draft(body))

    @app.get("/api/get-draft")
    async def get_draft(id: str | None = None):
        return await drafts.get_draft(id)

    @app.post("/api/verify-recaptcha", response_model=ValidResponse)
    async def verify_recaptcha(body: TokenRequest):
        return ValidResponse(valid=await verifier.verify_recaptcha(body.token))

    @app.post("/api/verify-turnstile", response_model=ValidResponse)
    async def verify_turnstile(body: TokenRequest):
        return ValidResponse(valid=await verifier.verify_turnstile(body.token))

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
