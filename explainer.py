"""
Domain explanations: language-model appraiser first, local heuristic after.

The model gets exactly one attempt. Any failure (no key, SDK error, timeout,
non-JSON text, schema mismatch) is logged and answered by `score_domain`, so
callers always receive a `ScoreResult`.
"""

import json
import logging
import math
import os
from datetime import datetime, timezone
from typing import Optional

import anthropic

from oracle_config import Vocabulary, jsonl_emit
from prng import clamp, iso_utc, round_half_up
from scorer import ScoreFeatures, ScoreResult, label_of, score_domain, verdict_for

logger = logging.getLogger("oracle")

DEFAULT_MODEL = "claude-3-5-haiku-latest"

PROMPT = """
You are a domain name appraiser for the .{suffix} TLD.
Analyze the domain "{domain}".

Context:
- .{suffix} domains are popular for memes, creators, AI agents, and games.
- Short, punchy, and culturally relevant names are best.

Return a JSON object strictly matching this schema:
{{
  "score": number (0-100),
  "verdict": "strong" | "okay" | "weak",
  "reasons": ["string", "string", "string"], (3-4 bullet points explaining why),
  "cautions": ["string", "string"], (1-2 downsides),
  "features": {{
    "label": "{label}",
    "labelLen": {label_len},
    "tokens": ["word1", "word2"],
    "hasHyphen": boolean,
    "hasDigits": boolean,
    "vowelPct": number
  }}
}}
Response must be valid JSON only.
"""


class ExplainerError(Exception):
    pass


def extract_json_object(text: str) -> dict:
    """Parse the span between the first '{' and the last '}'."""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end <= start:
        raise ExplainerError("model reply contains no JSON object")
    try:
        data = json.loads(text[start:end + 1])
    except ValueError as e:
        raise ExplainerError(f"model reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExplainerError("model reply is not a JSON object")
    return data


def _str_list(value, limit: int, field_name: str):
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise ExplainerError(f"'{field_name}' must be a list of strings")
    return list(dict.fromkeys(x.strip() for x in value if x.strip()))[:limit]


def result_from_model(domain: str, data: dict, fallback_features: ScoreFeatures) -> ScoreResult:
    raw_score = data.get("score")
    if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float)):
        raise ExplainerError("'score' must be a number")
    if not math.isfinite(raw_score):
        raise ExplainerError("'score' must be finite")
    score = int(clamp(round_half_up(raw_score), 0, 100))
    if data.get("verdict") not in ("strong", "okay", "weak"):
        raise ExplainerError("'verdict' must be strong, okay or weak")

    feats = data.get("features")
    features = fallback_features
    if isinstance(feats, dict) and isinstance(feats.get("tokens", []), list):
        features = ScoreFeatures(
            label=fallback_features.label,
            label_len=fallback_features.label_len,
            tokens=[str(t) for t in feats.get("tokens", [])][:6] or fallback_features.tokens,
            has_hyphen=fallback_features.has_hyphen,
            has_digits=fallback_features.has_digits,
            vowel_pct=fallback_features.vowel_pct,
        )

    # Verdict always follows the score thresholds
    return ScoreResult(
        domain=domain,
        score=score,
        verdict=verdict_for(score),
        reasons=_str_list(data.get("reasons"), 6, "reasons"),
        cautions=_str_list(data.get("cautions", []), 5, "cautions"),
        features=features,
        source="model",
    )


class ModelExplainer:
    def __init__(self, cfg: dict, vocab: Vocabulary, client=None):
        cfg = cfg or {}
        self.vocab = vocab
        self.model = str(cfg.get("model", DEFAULT_MODEL))
        self.max_tokens = int(cfg.get("max_tokens", 1000))
        self.timeout = float(cfg.get("timeout_seconds", 20))
        self.api_key = str(cfg.get("api_key") or os.environ.get("ANTHROPIC_API_KEY", ""))
        self.client = client
        if self.client is None and self.api_key:
            self.client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    @property
    def available(self) -> bool:
        return self.client is not None

    def explain(self, domain: str) -> ScoreResult:
        if self.client is None:
            raise ExplainerError("no API key configured")
        label = label_of(domain, self.vocab.suffix)
        prompt = PROMPT.format(suffix=self.vocab.suffix, domain=domain, label=label, label_len=len(label))
        try:
            msg = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            raise ExplainerError(f"model call failed: {e}") from e

        text = "".join(getattr(block, "text", "") for block in (msg.content or []))
        heuristic = score_domain(domain, self.vocab)
        return result_from_model(heuristic.domain, extract_json_object(text), heuristic.features)


def explain_domain(domain, vocab: Vocabulary, explainer: Optional[ModelExplainer] = None,
                   logging_cfg: Optional[dict] = None, now: Optional[datetime] = None) -> ScoreResult:
    """Model explanation when available, heuristic score otherwise. Never raises."""
    result = None
    if explainer is not None and explainer.available:
        try:
            result = explainer.explain(domain)
        except ExplainerError as e:
            logger.warning("Explainer fallback | domain=%s reason=%s", str(domain), str(e))
            jsonl_emit(logging_cfg, "explainer_fallback", {"domain": str(domain), "reason": str(e)})

    if result is None:
        result = score_domain(domain, vocab)
    result.generated_at = iso_utc(now or datetime.now(timezone.utc))
    return result
