"""FastAPI dependencies resolving engine collaborators from application state."""

from __future__ import annotations

from fastapi import Request
from redis.asyncio import Redis

from cropguard.data.regulations import ReferenceData, get_reference_data
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError


def get_repositories(request: Request) -> Repositories:
	store = getattr(request.app.state, "store", None)
	if store is None:
		raise RepositoryUnavailableError("no repository store is attached to the application")
	return store.repositories()


def get_redis(request: Request) -> Redis | None:
	return getattr(request.app.state, "redis", None)


def get_reference() -> ReferenceData:
	return get_reference_data()
