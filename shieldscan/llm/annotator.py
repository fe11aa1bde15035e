"""
False-Positive Annotator
========================
Best-effort advisory classification of rendered findings via Gemini.

Contract:
    - Enabled only when an API key is configured.
    - classify() NEVER raises: network, auth and response problems all
      degrade to Verdict.UNCERTAIN (logged at debug level).
    - annotate() only sees the console's rendered subset, so at most
      top_n × categories calls are made per run, issued concurrently.
    - Verdicts are returned keyed by id(finding); findings are not modified.
"""
import asyncio
import logging
import os
import re
from typing import Dict, Iterable, Optional

from shieldscan.core.config import GEMINI_API_KEY
from shieldscan.llm.client import GeminiClient
from shieldscan.llm.prompts import NOT_AVAILABLE, build_false_positive_prompt
from shieldscan.models.finding import Finding
from shieldscan.models.verdict import Verdict

logger = logging.getLogger(__name__)

SNIPPET_CONTEXT_LINES = 10

SNIPPET_FILE_NOT_FOUND = "Code snippet not available (file not found)."
SNIPPET_LINE_MISSING = "Code snippet not available (line number not specified)."

_TOKEN_TO_VERDICT = {
    "TRUE_POSITIVE": Verdict.LIKELY_TRUE_POSITIVE,
    "FALSE_POSITIVE": Verdict.LIKELY_FALSE_POSITIVE,
    "UNCERTAIN": Verdict.UNCERTAIN,
}


def extract_code_snippet(
    file_path: Optional[str],
    line: Optional[int],
    context_lines: int = SNIPPET_CONTEXT_LINES,
) -> str:
    """
    Return the source window around ``line``.

    The reported line is prefixed with ``>> N: `` and its neighbours with
    ``   N: ``. Missing files and lines produce a fixed marker instead.
    """
    if not file_path or not os.path.isfile(file_path):
        return SNIPPET_FILE_NOT_FOUND
    if not line:
        return SNIPPET_LINE_MISSING

    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as fh:
            lines = fh.read().splitlines()
    except OSError as exc:
        return f"Could not read code snippet: {exc}"

    start = max(0, line - 1 - context_lines)
    end = min(len(lines) - 1, line - 1 + context_lines)

    snippet = []
    for index in range(start, end + 1):
        number = index + 1
        prefix = f">> {number}: " if number == line else f"   {number}: "
        snippet.append(f"{prefix}{lines[index]}")
    return "\n".join(snippet)


def parse_verdict(text: Optional[str]) -> Verdict:
    """Map the model's reply to a Verdict; anything unexpected is UNCERTAIN."""
    if not text:
        return Verdict.UNCERTAIN
    token = re.sub(r"[`*.\s]", "", text).upper()
    return _TOKEN_TO_VERDICT.get(token, Verdict.UNCERTAIN)


class FalsePositiveAnnotator:
    """
    Usage:
        annotator = FalsePositiveAnnotator()
        if annotator.enabled:
            verdicts = await annotator.annotate(rendered_findings(bundle))
    """

    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        client: Optional[GeminiClient] = None,
    ) -> None:
        self.api_key = api_key
        self.client = client or GeminiClient(api_key=api_key)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def classify(self, finding: Finding) -> Verdict:
        if not self.enabled:
            return Verdict.UNCERTAIN

        message = finding.description or finding.rule_id or NOT_AVAILABLE
        snippet = extract_code_snippet(finding.file_path, finding.line)
        prompt = build_false_positive_prompt(message, snippet, finding.file_path, finding.line)

        try:
            reply = await self.client.generate(prompt)
        except Exception as exc:
            logger.debug("False-positive check failed for %s: %s", finding.location, exc)
            return Verdict.UNCERTAIN

        verdict = parse_verdict(reply)
        logger.debug("Verdict for %s (%s): %s", finding.location, finding.rule_id, verdict.value)
        return verdict

    async def annotate(self, findings: Iterable[Finding]) -> Dict[int, Verdict]:
        """Classify all findings concurrently; returns {id(finding): verdict}."""
        findings = list(findings)
        if not self.enabled or not findings:
            return {}

        try:
            verdicts = await asyncio.gather(*(self.classify(f) for f in findings))
        finally:
            await self.client.close()

        logger.info(
            "AI annotation: %d findings checked, %d possible false positives",
            len(findings),
            sum(1 for v in verdicts if v is Verdict.LIKELY_FALSE_POSITIVE),
        )
        return {id(f): v for f, v in zip(findings, verdicts)}
