"""Fleet data API endpoints.

Created: 2026-02-09

Read-only views for the dashboard panels. Every response carries a
``source`` tag naming the tier that answered (``tables``, ``workspace``,
``gateway``, ``rpc``, ``mock``, or ``none`` when every tier failed).
"""

from typing import Any

from fastapi import APIRouter

from fleetdeck.sources.service import get_fleet_data

router = APIRouter(tags=["Fleet"])


def _tagged(key: str, result, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {key: [item.to_dict() for item in result.items], **extra}
    body["source"] = result.source
    if result.message:
        body["message"] = result.message
    return body


@router.get("/agents")
async def list_agents() -> dict[str, Any]:
    result = await get_fleet_data().agents()
    return _tagged("agents", result, count=len(result.items))


@router.get("/activity")
async def list_activity(limit: int = 30) -> dict[str, Any]:
    result = await get_fleet_data().activity(limit)
    return _tagged("activities", result, total=len(result.items))


@router.get("/tasks")
async def list_tasks(status: str | None = None) -> dict[str, Any]:
    result = await get_fleet_data().tasks(status)
    return _tagged("tasks", result, total=len(result.items))


@router.get("/cron")
async def list_cron_jobs() -> dict[str, Any]:
    result = await get_fleet_data().cron()
    return _tagged("jobs", result)


@router.get("/wallet")
async def wallet_balance() -> dict[str, Any]:
    result = await get_fleet_data().wallet()
    body: dict[str, Any] = result.items.to_dict() if result.items else {"tokens": []}
    body["source"] = result.source
    if result.message:
        body["message"] = result.message
    return body
