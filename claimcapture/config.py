from pathlib import Path

import yaml

from .signatures import DEFAULT_TABLE

DEFAULTS = {
    "resolver_attempts": 3,
    "resolver_poll_ms": 250,
    "obstruction_max_cycles": 5,
    "obstruction_settle_ms": 300,
    "frame_wait_attempts": 10,
    "frame_poll_ms": 500,
    "scroll_max_passes": 60,
    "scroll_stagnant_passes": 4,
    "scroll_wait_ms": 140,
    "download_attempts": 2,
    "download_timeout_ms": 30000,
    "min_accept_score": 8,
    "format_priority": [
        "grid",
        "table",
        "nested_embedded_frame",
        "embedded_frame",
        "spreadsheet_export",
        "pdf_document",
    ],
    "extra_obstruction_signatures": [],
    "extra_chrome_phrases": [],
    "extra_clinical_keywords": [],
    "report_frame_patterns": [
        "iframe[src*='ReportViewer' i]",
        "iframe[src*='queueListing' i]",
        "iframe[id*='ReportViewer' i]",
        "iframe[name*='report' i]",
    ],
    "screenshot_dir": None,
    "headless": True,
    "report_url": None,
    "storage_state": None,
    "output_path": "claims.json",
}


def load_config(path=None, overrides=None):
    cfg = dict(DEFAULTS)
    if path:
        data = yaml.safe_load(Path(path).expanduser().read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"config {path} must be a mapping, got {type(data).__name__}")
        cfg.update(data)
    if overrides:
        cfg.update(overrides)
    return cfg


def resolve_config(cfg):
    if cfg is None:
        return dict(DEFAULTS)
    if cfg is DEFAULTS:
        return dict(DEFAULTS)
    merged = dict(DEFAULTS)
    merged.update(cfg)
    return merged


def signature_table(cfg):
    cfg = cfg or {}
    return DEFAULT_TABLE.with_extra(
        obstruction=cfg.get("extra_obstruction_signatures") or (),
        chrome=cfg.get("extra_chrome_phrases") or (),
        keywords=cfg.get("extra_clinical_keywords") or (),
    )
