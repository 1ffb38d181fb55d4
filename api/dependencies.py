"""FastAPI dependencies resolving services owned by the application."""

from __future__ import annotations

from fastapi import HTTPException, Request

from agents import SermonClassifierAgent
from api.services.planner import PlannerService
from core.domains import DomainConfig, DomainName, get_domain
from gateway import CollectionGateway


def get_planner(request: Request) -> PlannerService:
    return request.app.state.planner


def get_gateway(request: Request) -> CollectionGateway:
    return request.app.state.planner.gateway


def get_classifier(request: Request) -> SermonClassifierAgent:
    return request.app.state.classifier


def get_domain_config(domain: DomainName) -> DomainConfig:
    try:
        return get_domain(domain)
    except (KeyError, ValueError) as exc:  # pragma: no cover - enum validation runs first
        raise HTTPException(status_code=404, detail=f"Unknown domain {domain}") from exc
