"""logger: optional per-file scan history.

When ``.guidelint.yaml`` sets ``logging.enabled``, every scanned file adds
one JSON line to ``scan.jsonl`` under ``logging.directory``.  A line names
the file, the profile that judged it and whether it passed.  It lists the
rule id, line and severity of each violation.  The source itself is not
stored, only its line count and a short SHA-256 prefix, so two entries for
an unchanged file can be matched up.
"""

from __future__ import annotations

import datetime
import hashlib
import json
import os
from typing import Any

from guidelint.lib import config


def log_scan(
    log_dir: str,
    filepath: str,
    profile_name: str,
    profile_version: str,
    status: str,
    violations_data: list[dict[str, Any]],
    passed_rules: list[str],
    total_rules: int,
    source: str,
    scan_ms: int,
) -> None:
    """Append one scan entry to the log in *log_dir*; a blank *log_dir* does nothing.

    Args:
        log_dir: Directory to write the log file in.
        filepath: Path to the scanned file.
        profile_name: Name of the profile used.
        profile_version: Version of the profile used.
        status: Scan status ('rejected' or 'passed').
        violations_data: List of violation summary dicts.
        passed_rules: List of rule IDs that passed.
        total_rules: Total number of active rules.
        source: The source code that was scanned.
        scan_ms: Scan duration in milliseconds.
    """
    if not log_dir:
        return
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, config.get_str("filenames.scan_log"))

    utc_src = config.get_str("formatting.utc_offset_source")
    utc_rep = config.get_str("formatting.utc_offset_replacement")
    hash_prefix = config.get_str("formatting.hash_prefix")
    hash_trunc = config.get_int("defaults.hash_truncation_length")
    separators = tuple(config.get_list("formatting.json_separators"))

    entry: dict[str, Any] = {
        "timestamp": (
            datetime.datetime.now(datetime.timezone.utc)
            .isoformat()
            .replace(utc_src, utc_rep)
        ),
        "event": "scan",
        "file": filepath,
        "profile": profile_name,
        "profile_version": profile_version,
        "status": status,
        "violations": violations_data,
        "passed_rules": passed_rules,
        "total_rules": total_rules,
        "code_length_lines": len(source.splitlines()),
        "code_hash": hash_prefix + hashlib.sha256(source.encode()).hexdigest()[:hash_trunc],
        "scan_ms": scan_ms,
    }

    with open(log_path, "a", encoding="utf-8") as fh:
        fh.write(json.dumps(entry, separators=separators) + "\n")
