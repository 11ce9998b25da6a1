"""FastAPI web frontend for the Meeting Fatigue Analyzer.

Objective:
    Provide the OAuth endpoints, a JSON analysis API, and a few small
    server-rendered pages on top of
    :class:`src.meeting_fatigue.orchestrator.MeetingAnalysisOrchestrator`.
    This module keeps business logic inside the orchestrator and only handles
    HTTP request parsing and response rendering.

High-level call tree:
    - :func:`create_app`:
        - defines routes:
            - ``GET /health`` -> :func:`health`
            - ``GET /auth/google`` -> :func:`initiate_google_auth`
            - ``GET /auth/google/callback`` -> :func:`google_callback`
            - ``GET /api/analyze`` -> :func:`analyze_api`
            - ``GET /`` -> :func:`home`
            - ``GET /dashboard`` -> :func:`dashboard`
            - ``GET /error`` -> :func:`error_page`
        - wires templates via :class:`fastapi.templating.Jinja2Templates`
    - Dependencies (overridable in tests via ``app.dependency_overrides``):
        - :func:`get_app_settings`
        - :func:`get_orchestrator`
        - :func:`get_oauth_client`

Response envelope:
    ``{"success": true, "message": ..., "data": {...}}`` on success and
    ``{"success": false, "error": ...}`` on failure. Error details are hidden
    when ``settings.environment`` is ``production``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .auth import AuthorizationError, GoogleOAuthClient, OAuthError, extract_bearer_token
from .config import Settings, category_details, get_settings
from .models import AnalysisReport
from .orchestrator import MeetingAnalysisOrchestrator

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def get_app_settings() -> Settings:
    """Return application settings (FastAPI dependency)."""

    return get_settings()


def get_orchestrator(
    settings: Settings = Depends(get_app_settings),
) -> MeetingAnalysisOrchestrator:
    """Create a :class:`~src.meeting_fatigue.orchestrator.MeetingAnalysisOrchestrator`.

    A new orchestrator is built per request so no state is shared between
    requests. Tests override this dependency with a stub implementing
    ``run(...)``.

    Args:
        settings: Application settings.

    Returns:
        MeetingAnalysisOrchestrator: A new orchestrator instance.
    """

    return MeetingAnalysisOrchestrator(settings=settings)


def get_oauth_client(
    settings: Settings = Depends(get_app_settings),
) -> GoogleOAuthClient:
    """Create a :class:`~src.meeting_fatigue.auth.GoogleOAuthClient`."""

    return GoogleOAuthClient(settings)


def report_payload(report: AnalysisReport) -> dict[str, Any]:
    """Serialize an analysis report into the API ``data`` object.

    Args:
        report: Orchestrator output.

    Returns:
        dict[str, Any]: camelCase analysis result plus ``userInfo``.
    """

    data = report.result.model_dump(mode="json", by_alias=True)
    if report.user_info is not None:
        data["userInfo"] = {
            "name": report.user_info.name,
            "email": report.user_info.email,
        }
    return data


def public_error(error: Exception, settings: Settings, default: str) -> str:
    """Return the error message safe to show to the client.

    Args:
        error: Exception raised by the pipeline.
        settings: Application settings.
        default: Message used in production or when the error has no text.

    Returns:
        str: Client-facing message.
    """

    if settings.is_production:
        return default
    return str(error) or default


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Routes:
        - ``GET /health``:
            Basic liveness check.
        - ``GET /auth/google``:
            Returns the Google consent URL.
        - ``GET /auth/google/callback``:
            Exchanges the code and redirects to the dashboard with the token.
        - ``GET /api/analyze``:
            Runs the analysis for the bearer token and returns JSON.
        - ``GET /``, ``GET /dashboard``, ``GET /error``:
            Server-rendered pages.

    Returns:
        FastAPI: FastAPI app.
    """

    app = FastAPI(title="Meeting Fatigue Analyzer")

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals["category_details"] = category_details

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Health check endpoint.

        This is intentionally simple and should not perform external calls.

        Returns:
            dict[str, Any]: Health payload.
        """

        return {"success": True, "message": "Meeting Fatigue Analyzer API is running"}

    @app.get("/auth/google")
    def initiate_google_auth(
        oauth: GoogleOAuthClient = Depends(get_oauth_client),
    ) -> dict[str, str]:
        """Return the Google consent URL.

        Args:
            oauth: OAuth client dependency.

        Returns:
            dict[str, str]: ``{"authUrl": ...}``.
        """

        return {"authUrl": oauth.get_auth_url()}

    @app.get("/auth/google/callback")
    def google_callback(
        code: Optional[str] = None,
        oauth: GoogleOAuthClient = Depends(get_oauth_client),
        settings: Settings = Depends(get_app_settings),
    ) -> RedirectResponse:
        """Handle the OAuth redirect from Google.

        The access token is passed to the dashboard in the query string.
        Nothing is stored server-side.

        Args:
            code: Authorization code.
            oauth: OAuth client dependency.
            settings: Application settings.

        Returns:
            RedirectResponse: Redirect to the dashboard or the error page.
        """

        base = settings.frontend_url
        if not code:
            query = urlencode({"message": "Missing authorization code"})
            return RedirectResponse(f"{base}/error?{query}")

        try:
            tokens = oauth.exchange_code(code)
        except OAuthError:
            logger.exception("OAuth callback error")
            query = urlencode({"message": "Authentication failed"})
            return RedirectResponse(f"{base}/error?{query}")

        query = urlencode({"token": tokens.access_token})
        return RedirectResponse(f"{base}/dashboard?{query}")

    @app.get("/api/analyze")
    def analyze_api(
        authorization: Optional[str] = Header(default=None),
        days: Optional[int] = Query(default=None, ge=1, le=365),
        orchestrator: MeetingAnalysisOrchestrator = Depends(get_orchestrator),
        settings: Settings = Depends(get_app_settings),
    ) -> Any:
        """Run the analysis via JSON API.

        Args:
            authorization: ``Bearer <token>`` header.
            days: Analysis window (settings default if omitted).
            orchestrator: Orchestrator dependency.
            settings: Application settings.

        Returns:
            Any: Success or error envelope.
        """

        try:
            access_token = extract_bearer_token(authorization)
        except AuthorizationError as e:
            return JSONResponse({"success": False, "error": str(e)}, status_code=401)

        try:
            report = orchestrator.run(access_token, days=days)
        except Exception as e:
            logger.exception("Analysis error")
            return JSONResponse(
                {
                    "success": False,
                    "error": public_error(e, settings, "Internal server error"),
                },
                status_code=500,
            )

        return {
            "success": True,
            "message": report.message,
            "data": report_payload(report),
        }

    @app.get("/", response_class=HTMLResponse)
    def home(
        request: Request,
        oauth: GoogleOAuthClient = Depends(get_oauth_client),
    ) -> Any:
        """Render the sign-in page.

        Args:
            request: FastAPI request.
            oauth: OAuth client dependency.

        Returns:
            Any: Template response.
        """

        return templates.TemplateResponse(
            request,
            "index.html",
            {"auth_url": oauth.get_auth_url()},
        )

    @app.get("/dashboard", response_class=HTMLResponse)
    def dashboard(
        request: Request,
        token: Optional[str] = None,
        days: Optional[int] = Query(default=None, ge=1, le=365),
        orchestrator: MeetingAnalysisOrchestrator = Depends(get_orchestrator),
        settings: Settings = Depends(get_app_settings),
    ) -> Any:
        """Run the analysis and render the dashboard.

        Args:
            request: FastAPI request.
            token: Access token handed over by the OAuth callback.
            days: Analysis window.
            orchestrator: Orchestrator dependency.
            settings: Application settings.

        Returns:
            Any: Template response.
        """

        if not token:
            return templates.TemplateResponse(
                request,
                "error.html",
                {"message": "Missing or invalid authorization token"},
                status_code=401,
            )

        try:
            report = orchestrator.run(token, days=days)
        except Exception as e:
            logger.exception("Analysis error")
            return templates.TemplateResponse(
                request,
                "error.html",
                {"message": public_error(e, settings, "Failed to analyze calendar")},
                status_code=500,
            )

        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "report": report,
                "result": report.result,
                "stats": report.result.stats,
                "fatigue": report.result.fatigue_score,
            },
        )

    @app.get("/error", response_class=HTMLResponse)
    def error_page(request: Request, message: str = "Something went wrong") -> Any:
        """Render an error page.

        Args:
            request: FastAPI request.
            message: Message to display.

        Returns:
            Any: Template response.
        """

        return templates.TemplateResponse(request, "error.html", {"message": message})

    return app


app = create_app()
