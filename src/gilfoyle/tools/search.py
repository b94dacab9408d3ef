"""
tools/search.py — Web Search Tool

Web search via the Tavily search API (https://tavily.com) over httpx.
Results are rendered as YAML so the model sees title/content/url/score
per hit. Without TAVILY_API_KEY the tool returns a static fallback that
explains how to enable real search.

Registered tools:
  - web_search → search the web and return the top results
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import yaml

from gilfoyle.exceptions import ToolError
from gilfoyle.observability.logger import get_logger
from gilfoyle.tools.tool_registry import ToolRegistry

log = get_logger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"


def fallback_results(query: str) -> str:
    return (
        f'Web search for "{query}":\n\n'
        "⚠️  Tavily API key not configured. Set TAVILY_API_KEY environment "
        "variable to enable real web search.\n\n"
        "🔍 Search Results (fallback):\n"
        f"1. Latest documentation and guides for {query}\n"
        "2. Stack Overflow discussions and solutions\n"
        "3. GitHub repositories and code examples\n"
        "4. Official documentation and API references\n"
        "5. Tutorial articles and blog posts\n\n"
        "💡 To enable real web search:\n"
        "1. Get an API key from https://tavily.com\n"
        "2. Set TAVILY_API_KEY in your environment variables\n"
        "3. Restart the application"
    )


def render_results(query: str, results: list[dict[str, Any]]) -> str:
    docs = [
        {
            "title": r.get("title", ""),
            "content": r.get("content", ""),
            "url": r.get("url", ""),
            "score": r.get("score"),
        }
        for r in results
    ]
    body = yaml.safe_dump(docs, sort_keys=False, allow_unicode=True) if docs else "[]\n"
    return (
        f'🔍 Web search results for "{query}":\n\n'
        f"{body}\n"
        "Search completed successfully using Tavily web search."
    )


async def tavily_search(
    query: str,
    api_key: str,
    max_results: int,
    timeout: float,
    client: Optional[httpx.AsyncClient] = None,
) -> list[dict[str, Any]]:
    """POST the query to Tavily and return its `results` list."""
    payload = {"query": query, "max_results": max_results, "topic": "general"}
    headers = {"Authorization": f"Bearer {api_key}"}

    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            response = await owned.post(TAVILY_SEARCH_URL, json=payload, headers=headers)
    else:
        response = await client.post(TAVILY_SEARCH_URL, json=payload, headers=headers)
    response.raise_for_status()

    data = response.json()
    results = data.get("results", []) if isinstance(data, dict) else []
    return [r for r in results if isinstance(r, dict)][:max_results]


def register(registry: ToolRegistry, settings) -> None:
    cfg = settings.tools.search

    @registry.register(
        name="web_search",
        description="For general information searches",
        label="web search",
        category="search",
        parameters={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "search terms"},
            },
            "required": ["query"],
        },
    )
    async def web_search(query: str) -> str:
        query = str(query)
        if not settings.tavily_api_key:
            log.debug("web_search.no_api_key", query=query)
            return fallback_results(query)

        log.debug("web_search.start", query=query, max_results=cfg.max_results)
        try:
            results = await tavily_search(
                query,
                api_key=settings.tavily_api_key,
                max_results=cfg.max_results,
                timeout=cfg.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise ToolError("Error performing web search: Search timed out") from e
        except httpx.HTTPError as e:
            log.error("web_search.error", query=query, error=str(e))
            raise ToolError(f"Error performing web search: {e}") from e
        except ValueError as e:
            raise ToolError("Error performing web search: malformed response") from e

        log.debug("web_search.complete", query=query, result_count=len(results))
        return render_results(query, results)
