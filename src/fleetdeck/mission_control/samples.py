"""Sample review items used by ``POST /api/reviews/seed``.

Created: 2026-02-12
"""

from typing import Any

SAMPLE_REVIEWS: list[dict[str, Any]] = [
    {
        "title": "Video pipeline retry fixes",
        "description": "Retry wrapper on external render calls and stricter request schemas",
        "type": "document",
        "content": (
            "# Video pipeline fixes\n\n"
            "## Changes\n"
            "- Animated caption endpoint with five styles\n"
            "- Retry wrapper around every external render API call\n"
            "- Request validation for generate and easy-button flows\n\n"
            "## Testing\n"
            "All endpoints exercised locally. Ready for staging."
        ),
        "submitted_by": "Forge",
        "priority": "high",
        "tags": ["code", "launch-critical"],
        "upstream_recommendation": "approved",
        "upstream_notes": "Covers every audit item.",
    },
    {
        "title": "Social scheduler automation",
        "description": "Drive folder intake routed to the scheduling service with a daily digest",
        "type": "document",
        "content": (
            "# Social scheduler\n\n"
            "1. Drop media in the shared intake folder\n"
            "2. The workflow parses platform and time from the filename\n"
            "3. Posts are queued, or published directly when the queue is full\n"
            "4. A chat notification reports success or failure"
        ),
        "submitted_by": "Forge",
        "priority": "medium",
        "tags": ["automation", "social"],
        "upstream_recommendation": "approved",
        "upstream_notes": "Free tier limits may bite at scale.",
    },
    {
        "title": "Mission Control live data",
        "description": "Dashboard wired to the hosted tables with filesystem fallback",
        "type": "website",
        "preview_url": "https://mission-control-preview.example.com",
        "content": "Agent status, task board, activity feed and cron calendar now read live data.",
        "submitted_by": "Forge",
        "priority": "high",
        "tags": ["dashboard"],
    },
    {
        "title": "Clinic demo site",
        "description": "Landing page demo for a dental practice prospect",
        "type": "website",
        "preview_url": "https://clinic-demo-preview.example.com",
        "submitted_by": "Pepper",
        "priority": "medium",
        "tags": ["marketing", "demo"],
        "upstream_recommendation": "changes_requested",
        "upstream_notes": "Hero copy is too long on mobile.",
    },
    {
        "title": "Token swap CLI specification",
        "description": "Command-line tool for stablecoin swaps with spending limits",
        "type": "document",
        "content": (
            "# Swap CLI\n\n"
            "- `swap quote <from> <to> <amount>`\n"
            "- `swap execute` with a per-day spending cap\n"
            "- Every transaction is logged"
        ),
        "submitted_by": "Trading",
        "priority": "low",
        "tags": ["trading", "spec"],
    },
]
