"""Liveness endpoints."""


async def root() -> dict:
    return {"message": "API running"}


async def ping() -> dict:
    return {"message": "pong"}
