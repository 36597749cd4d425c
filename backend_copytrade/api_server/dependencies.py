"""
FastAPI dependencies: process-wide store and gateway handles.

Created once in the app lifespan and kept on app.state; tests swap them by
passing their own instances to create_app().
"""

from __future__ import annotations

from fastapi import Request

from backend_copytrade.database import Store
from backend_copytrade.gateways import AgentGateway, ChainGateway


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_chain(request: Request) -> ChainGateway:
    return request.app.state.chain


def get_agents(request: Request) -> AgentGateway:
    return request.app.state.agents
