"""Public page serving — GET /p/{slug} renders a published portfolio."""

from __future__ import annotations

import hashlib

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse, Response

from backend.services.builder import get_builder
from engine.kernel.builder import NotFound, PortfolioBuilder
from engine.kernel.renderer import build_render_plan, render_html

router = APIRouter(tags=["public"])

# Cache-Control TTL: 1 minute browser, 5 minutes shared cache
_CACHE_CONTROL = "public, max-age=60, s-maxage=300, stale-while-revalidate=3600"


@router.get("/p/{slug}", response_class=HTMLResponse)
async def serve_published_page(slug: str, builder: PortfolioBuilder = Depends(get_builder)) -> Response:
    """
    Serve a published portfolio page by slug.

    Returns 404 if the slug does not exist or the portfolio has been unpublished.
    """
    try:
        portfolio = await builder.get_published(slug)
    except NotFound:
        return HTMLResponse(
            content="<html><body><h1>404 — Page not found</h1></body></html>",
            status_code=404,
        )

    plan = build_render_plan(portfolio.template, portfolio.blocks, builder.media)
    html_bytes = render_html(plan, title=portfolio.title).encode("utf-8")
    etag = f'"{hashlib.md5(html_bytes, usedforsecurity=False).hexdigest()}"'

    return Response(
        content=html_bytes,
        media_type="text/html; charset=utf-8",
        headers={
            "Cache-Control": _CACHE_CONTROL,
            "ETag": etag,
            "X-Content-Type-Options": "nosniff",
        },
    )


@router.get("/api/public/{slug}", status_code=200)
async def get_published_plan(slug: str, builder: PortfolioBuilder = Depends(get_builder)) -> dict:
    """Render plan of a published portfolio, for clients that draw it themselves."""
    try:
        portfolio = await builder.get_published(slug)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Portfolio not found.") from e

    plan = build_render_plan(portfolio.template, portfolio.blocks, builder.media)
    return {"title": portfolio.title, "theme": portfolio.theme, **plan.to_dict()}
