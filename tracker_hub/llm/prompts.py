"""Prompt templates for the completion capability."""

PARSE_PROMPT_SYSTEM = """Parse the user's tracking request and extract:
1. A short name for the tracker (3-5 words)
2. A description (1 sentence)
3. Which platforms/sources to track from (tiktok, instagram, reddit, product hunt, etc)
4. Search queries to use for finding content

Examples:
- "Track Korean beauty trends from TikTok" -> sources: ["tiktok"], queries: ["Korean beauty trends", "K-beauty skincare", "Korean makeup"]
- "Monitor AI tools on Product Hunt" -> sources: ["product hunt"], queries: ["AI tools Product Hunt", "new AI launches", "artificial intelligence startup"]

Return as JSON with keys: name, description, sources, queries"""

ENRICH_SYSTEM_TEMPLATE = """You are analyzing search results for a tracker: "{prompt}".
For every result, identified by its "index":
- score its relevance to the tracker from 0 to 10
- write a short summary (at most two sentences)
- add up to five short topical tags
- label the sentiment as "positive", "neutral" or "negative"

Return JSON of the form:
{{"results": [{{"index": 0, "score": 7, "summary": "...", "tags": ["..."], "sentiment": "neutral"}}]}}"""


def build_enrichment_instructions(prompt: str) -> str:
    """Build the enrichment system prompt for a tracker prompt."""
    return ENRICH_SYSTEM_TEMPLATE.format(prompt=prompt.replace('"', "'"))
