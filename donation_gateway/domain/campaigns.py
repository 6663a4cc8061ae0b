"""Campaign analysis - tags and summary for subscription campaigns"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Union

from donation_gateway.domain.exceptions import TextGenerationError
from donation_gateway.domain.explanations import TextGenerator
from donation_gateway.domain.models import CampaignAnalysis
from donation_gateway.infrastructure.observability.metrics import explanation_cache_counter

logger = logging.getLogger(__name__)

MIN_TAGS = 2
MAX_TAGS = 5
GENERIC_TAGS = ("humanitarian aid", "community support")
DEFAULT_SUMMARY = "Campaign provides essential support to communities in need."

# (keywords, tag) pairs checked in order by the keyword fallback
KEYWORD_TAGS = [
    (("emergency", "disaster"), "emergency relief"),
    (("food", "hunger"), "food security"),
    (("water", "clean"), "clean water"),
    (("education", "school"), "education"),
    (("health", "medical"), "healthcare"),
    (("nepal",), "Nepal"),
    (("africa",), "Africa"),
    (("asia",), "Asia"),
]

ANALYSIS_PROMPT = """Analyze this campaign description and provide:
1. 3-5 relevant tags (comma-separated)
2. A one-sentence summary

Campaign: "{description}"

Format your response as JSON:
{{
  "tags": ["tag1", "tag2", "tag3"],
  "summary": "One sentence summary here."
}}"""


@dataclass(frozen=True)
class JsonAnalysis:
    """Reply was a well-formed JSON object"""

    tags: List[object]
    summary: object


@dataclass(frozen=True)
class LineParsedAnalysis:
    """Reply was free text with "tags:" / "summary:" lines"""

    tags: List[str]
    summary: str


@dataclass(frozen=True)
class UnparseableAnalysis:
    """Reply carried nothing usable"""

    raw: str


ParsedAnalysis = Union[JsonAnalysis, LineParsedAnalysis, UnparseableAnalysis]


def normalize_description(description: str) -> str:
    """Cache key: case-folded with whitespace runs collapsed"""
    return " ".join(description.casefold().split())


def parse_analysis_reply(raw: str) -> ParsedAnalysis:
    """Classify a text generation reply into one of the parse variants"""
    try:
        payload = json.loads(raw)
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        json_tags = payload.get("tags")
        return JsonAnalysis(
            tags=json_tags if isinstance(json_tags, list) else [],
            summary=payload.get("summary"),
        )

    tags: List[str] = []
    summary = ""
    for line in raw.splitlines():
        _, sep, value = line.partition(":")
        if not sep:
            continue
        lowered = line.lower()
        if "tag" in lowered:
            tags.extend(t.strip().strip('"[]').strip() for t in value.split(","))
        elif "summary" in lowered:
            summary = value.strip().replace('"', "")

    if tags or summary:
        return LineParsedAnalysis(tags=tags, summary=summary)
    return UnparseableAnalysis(raw=raw)


def _bounded_tags(tags: List[str]) -> tuple:
    if len(tags) < MIN_TAGS:
        return GENERIC_TAGS
    return tuple(tags[:MAX_TAGS])


def validate_analysis(parsed: ParsedAnalysis) -> CampaignAnalysis:
    """Turn a parse variant into a CampaignAnalysis with 2 to 5 non-empty tags"""
    if isinstance(parsed, UnparseableAnalysis):
        return CampaignAnalysis(tags=GENERIC_TAGS, summary=DEFAULT_SUMMARY)

    tags = [
        tag.strip().lower()
        for tag in parsed.tags
        if isinstance(tag, str) and tag.strip()
    ]
    summary = parsed.summary.strip() if isinstance(parsed.summary, str) else ""

    return CampaignAnalysis(tags=_bounded_tags(tags), summary=summary or DEFAULT_SUMMARY)


def keyword_analysis(description: str) -> CampaignAnalysis:
    """Offline tagging from keyword matches in the description"""
    lowered = description.lower()
    tags = [tag for keywords, tag in KEYWORD_TAGS if any(k in lowered for k in keywords)]
    if len(tags) < MIN_TAGS:
        tags.extend(GENERIC_TAGS)

    # Summary names every match, tags are capped
    return CampaignAnalysis(
        tags=tuple(tags[:MAX_TAGS]),
        summary=f"This campaign provides {', '.join(tags)} to communities in need.",
    )


class CampaignAnalysisCache:
    """Memoizes campaign analysis by normalized description"""

    def __init__(
        self,
        generator: TextGenerator,
        max_tokens: int = 50,
        temperature: float = 0.7,
        timeout: float = 5.0,
    ):
        self.generator = generator
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._entries: Dict[str, CampaignAnalysis] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def analyze(self, description: str) -> CampaignAnalysis:
        key = normalize_description(description)
        cached = self._entries.get(key)
        if cached is not None:
            explanation_cache_counter.labels(cache="campaign", result="hit").inc()
            logger.debug("Using cached campaign analysis")
            return cached

        explanation_cache_counter.labels(cache="campaign", result="miss").inc()
        try:
            raw = await asyncio.wait_for(
                self.generator.generate(
                    ANALYSIS_PROMPT.format(description=description),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
            parsed = parse_analysis_reply(raw.strip())
            if isinstance(parsed, UnparseableAnalysis):
                logger.warning("Campaign analysis reply unparseable, using keyword fallback")
                analysis = keyword_analysis(description)
            else:
                if isinstance(parsed, LineParsedAnalysis):
                    logger.warning("Campaign analysis reply was not JSON, used line parsing")
                analysis = validate_analysis(parsed)
        except (TextGenerationError, asyncio.TimeoutError) as e:
            logger.warning(f"Campaign analysis unavailable, using keyword fallback: {e}")
            analysis = keyword_analysis(description)
        except Exception as e:
            logger.error(f"Unexpected campaign analysis error: {e}")
            analysis = keyword_analysis(description)

        self._entries[key] = analysis
        logger.info(
            "Campaign analysis ready",
            extra={"tags": list(analysis.tags), "summary_length": len(analysis.summary)},
        )
        return analysis
