from datetime import datetime, timezone

from buildr.config import settings
from buildr.schemas.pipeline import BuildContext

# section tag -> substrings that must all appear (any one group matches)
SECTION_MARKERS: dict[str, list[tuple[str, ...]]] = {
    "hero": [("hero",)],
    "navigation": [("<nav",), ("navbar",)],
    "about": [("about",)],
    "services": [("services",)],
    "pricing": [("pricing",)],
    "testimonials": [("testimonial",)],
    "contact": [("contact",)],
    "footer": [("<footer",)],
    "faq": [("faq",), ("frequently asked",)],
    "gallery": [("gallery",)],
    "team": [("team",)],
    "features": [("features",)],
    "cta": [("cta",), ("call-to-action",)],
    "menu": [("menu", "food"), ("menu", "price"), ("menu", "dish"), ("menu", "$")],
}


def detect_sections(document: str) -> set[str]:
    lowered = document.lower()
    return {
        tag
        for tag, groups in SECTION_MARKERS.items()
        if any(all(marker in lowered for marker in group) for group in groups)
    }


def new_context(project_type: str = "website", features: list[str] | None = None) -> BuildContext:
    return BuildContext(project_type=project_type, feature_list=list(features or []))


def update_context(
    previous: BuildContext,
    document: str,
    user_request: str,
    limit: int | None = None,
) -> BuildContext:
    if limit is None:
        limit = settings.recent_requests_limit
    requests = [*previous.recent_user_requests, user_request][-limit:]
    return previous.model_copy(update={
        "sections_present": detect_sections(document),
        "recent_user_requests": requests,
        "last_build_timestamp": datetime.now(timezone.utc),
    })


def format_context(context: BuildContext) -> str:
    """Render the context as a prompt block for follow-up requests."""
    lines = ["## Current Build Context", f"Project type: {context.project_type}"]
    if context.feature_list:
        lines.append("Features: " + ", ".join(context.feature_list))
    if context.sections_present:
        lines.append("Sections present: " + ", ".join(sorted(context.sections_present)))
    if context.recent_user_requests:
        lines.append("Recent requests:")
        lines.extend(f"- {req[:200]}" for req in context.recent_user_requests)
    return "\n".join(lines)
