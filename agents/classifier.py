"""Classifier agent that tags sermons with the planner's option values."""

from __future__ import annotations

import json
from typing import List, Optional

from api.models.schemas import SermonAnalysisRequest, SermonClassification
from llm import ChatMessage, LLMClient, safe_json_loads


class SermonClassifierAgent:
    """Ask the LLM to pick one option per field for a sermon."""

    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    def run(self, request: SermonAnalysisRequest) -> SermonClassification:
        system_prompt = (
            "You classify sermons for a church teaching planner. "
            "For each field you MUST use EXACTLY one of the provided options; never invent new values. "
            "Pick hashtags only from the available hashtags. "
            'Return ONLY JSON: {"series", "theme", "audience", "season", "lessonType", '
            '"keyTakeaway" (one sentence), "hashtags" (comma separated)}. #agent:classifier'
        )
        options = request.options
        user_prompt = json.dumps(
            {
                "title": request.title,
                "content": request.content,
                "options": options.model_dump(by_alias=True),
            }
        )
        raw = self.llm.chat(
            [
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=user_prompt),
            ],
            temperature=0.2,
            max_tokens=500,
        )
        data = safe_json_loads(raw)
        return SermonClassification(
            series=_pick(data.get("series"), options.series),
            theme=_pick(data.get("theme"), options.themes),
            audience=_pick(data.get("audience"), options.audiences),
            season=_pick(data.get("season"), options.seasons),
            lesson_type=_pick(data.get("lessonType"), options.lesson_types),
            key_takeaway=str(data.get("keyTakeaway") or ""),
            hashtags=_filter_hashtags(data.get("hashtags"), options.hashtags),
        )


def _pick(value: object, allowed: List[str]) -> Optional[str]:
    """Return ``value`` when it matches an option, ignoring case and spacing."""

    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for option in allowed:
        if option.strip().lower() == wanted:
            return option
    return None


def _filter_hashtags(value: object, allowed: List[str]) -> str:
    if isinstance(value, list):
        tags = [str(tag) for tag in value]
    elif isinstance(value, str):
        tags = value.split(",")
    else:
        return ""
    tags = [tag.strip() for tag in tags if tag.strip()]
    if allowed:
        known = set(allowed)
        tags = [tag for tag in tags if tag in known]
    return ", ".join(dict.fromkeys(tags))


__all__ = ["SermonClassifierAgent"]
