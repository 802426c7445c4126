#!/usr/bin/env python3
from flask import Flask, jsonify, render_template_string, request, Response
import os, io, csv

from engine import curation_report, load_snapshot, market_report, utc_now
from explainer import ModelExplainer, explain_domain
from market_sim import normalize_day
from oracle_config import load_config, setup_logging
from portfolio import analyze_portfolio
from period_diff import curation_status
from scorer import label_of, score_domain
from snapshot_cache import SnapshotCache

PAGE = """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Reserve Oracle</title>
    <style>
      body{font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; padding:24px}
      table{border-collapse: collapse; width: 100%}
      th, td{padding:8px; border-bottom:1px solid #ddd; text-align: left}
      .muted{color:#666}
      .chip{display:inline-block; padding:2px 6px; border-radius:10px; background:#eee}
      .grid{display:grid; grid-template-columns: repeat(4, 1fr); gap: 12px}
      .card{border:1px solid #ddd; padding:12px; border-radius:10px}
      .btn{padding:8px 12px; border:1px solid #222; background:#fff; border-radius:8px; text-decoration:none}
      .btn:hover{background:#f5f5f5}
      .up{color:#1a7f37} .down{color:#cf222e}
    </style>
  </head>
  <body>
    <h1>Reserve Oracle</h1>
    {% if error %}
    <div class="card"><strong>Snapshot unavailable:</strong> {{ error }}</div>
    {% endif %}
    <div class="grid">
      <div class="card">
        <div class="muted">Domains Bought</div>
        <div><strong>{{ stats.domainsBought or 0 }}</strong></div>
      </div>
      <div class="card">
        <div class="muted">Total Spent (USD)</div>
        <div><strong>{{ "%.2f"|format(stats.totalSpentUsd or 0) }}</strong></div>
      </div>
      <div class="card">
        <div class="muted">Source</div>
        <div><strong>{{ snapshot_source or '-' }}</strong> {% if mock %}<span class="chip">mock</span>{% endif %}</div>
      </div>
      <div class="card">
        <div class="muted">Curation</div>
        <div><strong>{{ curation.stage }}</strong> <span class="muted">next {{ curation.nextRunAt }}</span></div>
      </div>
    </div>

    <p>
      <a class="btn" href="/export.csv">Export CSV</a>
      <a class="btn" href="/export.json">Export JSON</a>
      <a class="btn" href="/api/oracle?mode=pipeline">Oracle JSON</a>
    </p>

    {% if periods %}
    <h2>Since last curation</h2>
    <table>
      <thead><tr><th>Metric</th><th>Current</th><th>Previous</th><th>Delta</th></tr></thead>
      <tbody>
      {% for key in ["count", "avgLen", "pDigits", "pHyphen", "vowelPct", "avgSyllables"] %}
        <tr>
          <td>{{ key }}</td>
          <td>{{ periods.current.stats[key] }}</td>
          <td>{{ periods.previous.stats[key] }}</td>
          <td class="{{ 'up' if periods.delta[key] > 0 else ('down' if periods.delta[key] < 0 else '') }}">{{ periods.delta[key] }}</td>
        </tr>
      {% endfor %}
      </tbody>
    </table>
    {% endif %}

    <h2>Market board <span class="muted">{{ market.day }}</span></h2>
    <table>
      <thead><tr><th>Signal</th><th>Dominance</th><th>Delta</th><th>Base</th><th>Bids</th><th>Offers</th><th>Watch</th></tr></thead>
      <tbody>
      {% for s in market.signals %}
        <tr>
          <td><span class="chip">{{ s.kind }}</span> {{ s.value }}{% if s.key in featured %} *{% endif %}</td>
          <td>{{ s.dominance }}%</td>
          <td class="{{ 'up' if s.dominanceDelta > 0 else ('down' if s.dominanceDelta < 0 else '') }}">{{ s.dominanceDelta }}</td>
          <td>{{ s.baseScore }}</td>
          <td>{{ s.bids }}</td>
          <td>{{ s.offers }}</td>
          <td>{{ s.watch }}</td>
        </tr>
      {% endfor %}
      </tbody>
    </table>

    <h2>Latest domains</h2>
    <table>
      <thead><tr><th>Domain</th><th>Score</th><th>Price (USD)</th><th>Created</th><th>Expires</th></tr></thead>
      <tbody>
      {% for row in rows %}
        <tr>
          <td><a href="/api/oracle?mode=domain&domain={{ row.domain }}">{{ row.domain }}</a></td>
          <td>{{ row.score }}</td>
          <td>{{ row.priceUsd if row.priceUsd is not none else '' }}</td>
          <td class="muted">{{ row.createdAt or '' }}</td>
          <td class="muted">{{ row.expires or '' }}</td>
        </tr>
      {% endfor %}
      </tbody>
    </table>
  </body>
</html>
"""

EXPORT_FIELDS = ["domain", "label", "score", "verdict", "priceUsd", "createdAt", "expires", "status"]


def json_error(status: int, message: str):
    return jsonify({"error": message}), status


def create_app(source_cfg, engine_cfg, cache=None, clock=utc_now, explainer=None):
    app = Flask(__name__)
    cache = cache if cache is not None else SnapshotCache(engine_cfg.cache_ttl_seconds)
    if explainer is None:
        explainer = ModelExplainer(engine_cfg.explainer, engine_cfg.vocabulary)
    max_age = int(engine_cfg.cache_ttl_seconds)

    def snapshot(refresh: bool = False):
        params = {k: request.args.get(k) for k in ("statuses", "statusGroups", "includes") if request.args.get(k)}
        return load_snapshot(source_cfg, engine_cfg, clock(), cache=cache, refresh=refresh, params=params)

    def export_rows(snap):
        rows = []
        for d in snap.domains:
            res = score_domain(d.domain, engine_cfg.vocabulary)
            rec = d.to_dict()
            rows.append({
                "domain": d.domain,
                "label": label_of(d.domain, engine_cfg.vocabulary.suffix),
                "score": res.score,
                "verdict": res.verdict,
                "priceUsd": rec.get("priceUsd"),
                "createdAt": rec.get("createdAt"),
                "expires": rec.get("expires"),
                "status": rec.get("status"),
            })
        return rows

    @app.route("/")
    def home():
        now = clock()
        snap = snapshot()
        board = market_report(engine_cfg, now, limit=20)
        featured = engine_cfg.market.featured_keys
        curation = curation_status(now, engine_cfg.curation_utc_hour, engine_cfg.curation_utc_minute,
                                   engine_cfg.stage_seconds)
        periods, rows = None, []
        if snap.ok:
            periods = curation_report(snap, engine_cfg, now)["periods"]
            rows = export_rows(snap)[:50]
        return render_template_string(PAGE, rows=rows, stats=snap.stats if snap.ok else {}, snapshot_source=snap.source,
                                      mock=snap.mock, error=snap.error, periods=periods, curation=curation,
                                      market=board, featured=featured)

    @app.route("/api/domains")
    def api_domains():
        snap = snapshot(refresh=request.args.get("refresh") == "1")
        if not snap.ok:
            return jsonify(snap.to_dict()), snap.status
        resp = jsonify(snap.to_dict())
        resp.headers["Cache-Control"] = f"private, max-age={max_age}"
        return resp

    @app.route("/api/oracle")
    def api_oracle():
        mode = (request.args.get("mode") or "pipeline").lower()
        requested = request.args.get("domain") or ""
        now = clock()

        snap = snapshot()
        if not snap.ok:
            return json_error(502, "Oracle could not load domains data.")

        if mode == "domain":
            if not requested.strip():
                return json_error(400, "Missing domain parameter.")
            result = explain_domain(requested, engine_cfg.vocabulary, explainer, engine_cfg.logging, now=now)
            resp = jsonify(result.to_dict())
            resp.headers["Cache-Control"] = "private, max-age=30"
            return resp

        summary = analyze_portfolio(snap.domains, engine_cfg.vocabulary, now, snap.fetched_at, snap.source)
        resp = jsonify(summary.to_dict())
        resp.headers["Cache-Control"] = f"private, max-age={max_age}"
        return resp

    @app.route("/api/market")
    def api_market():
        day = request.args.get("day")
        kind = request.args.get("kind") or None
        limit = request.args.get("limit", type=int)
        if kind is not None and kind not in ("token", "shape", "start"):
            return json_error(400, "kind must be one of token, shape, start.")
        try:
            when = normalize_day(day) if day else clock()
        except ValueError:
            return json_error(400, "day must be YYYY-MM-DD.")
        if limit is not None and limit <= 0:
            return json_error(400, "limit must be a positive integer.")
        return jsonify(market_report(engine_cfg, when, kind, limit))

    @app.route("/api/curation")
    def api_curation():
        snap = snapshot()
        if not snap.ok:
            return json_error(502, "Oracle could not load domains data.")
        return jsonify(curation_report(snap, engine_cfg, clock()))

    @app.route("/export.csv")
    def export_csv():
        snap = snapshot()
        if not snap.ok:
            return json_error(502, "Oracle could not load domains data.")
        si = io.StringIO()
        cw = csv.writer(si)
        cw.writerow(EXPORT_FIELDS)
        for r in sorted(export_rows(snap), key=lambda r: -r["score"]):
            cw.writerow(["" if r[k] is None else r[k] for k in EXPORT_FIELDS])
        output = si.getvalue().encode("utf-8")
        return Response(output, mimetype="text/csv", headers={"Content-Disposition": "attachment; filename=reserve_export.csv"})

    @app.route("/export.json")
    def export_json():
        snap = snapshot()
        if not snap.ok:
            return json_error(502, "Oracle could not load domains data.")
        return jsonify(sorted(export_rows(snap), key=lambda r: -r["score"]))

    return app


if __name__ == "__main__":
    src_cfg, eng_cfg = load_config(os.environ.get("ORACLE_CONFIG"))
    setup_logging(eng_cfg.logging)
    app = create_app(src_cfg, eng_cfg)
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "8088")), debug=False)
