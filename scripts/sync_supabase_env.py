#!/usr/bin/env python3
"""
Sync Supabase env and verify local health for the backend and E2E tests.

Why:
    After `supabase start` / `db reset`, the API keys change and the API URL
    may differ. The backend and the live provisioning tests create auth users
    and table rows, which requires a correct `SUPABASE_URL`, a valid
    `SUPABASE_SERVICE_ROLE_KEY` and the matching `SUPABASE_ANON_KEY`.

Behavior:
    - Runs `supabase status -o json` (fail-fast on errors).
    - Extracts API URL, SERVICE_ROLE_KEY and ANON_KEY and updates them in `.env`.
    - Verifies that REST and Auth services are reported as running; exits
      non-zero otherwise.
    - Creates a backup `.env.bak` before writing.

Security:
    This script is for local dev/test only and never prints secret values. It
    only checks for presence and updates `.env` on disk.
"""
from __future__ import annotations

import json
import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

ENV_PATH = Path(".env")
BACKUP_PATH = Path(".env.bak")
REQUIRED_SERVICES = ("rest", "auth")

logger = logging.getLogger("institute.scripts.sync_env")


@dataclass(frozen=True)
class SupabaseStatus:
    api_url: str | None
    service_role_key: str | None
    anon_key: str | None
    services_ok: bool


def _load_supabase_status() -> dict:
    try:
        proc = subprocess.run(
            ["supabase", "status", "-o", "json"],
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise SystemExit("supabase CLI not found. Install it before running this script.") from exc
    except subprocess.CalledProcessError as exc:
        raise SystemExit(f"supabase status failed: {exc.stderr or exc.stdout}") from exc

    text = proc.stdout.strip()
    json_start = text.find("{")
    if json_start == -1:
        raise SystemExit("Unexpected supabase status output (no JSON payload found).")
    data = json.loads(text[json_start:])
    if not isinstance(data, dict):
        raise SystemExit("Unexpected supabase status JSON payload.")
    return data


def _lookup(d: Any, *keys: str) -> Any:
    """Return the first present key, falling back to case-insensitive matches."""
    if not isinstance(d, dict):
        return None
    for k in keys:
        if k in d:
            return d[k]
    lowered = {str(k).lower(): v for k, v in d.items()}
    for k in keys:
        v = lowered.get(k.lower())
        if v is not None:
            return v
    return None


def _extract_status(data: dict) -> SupabaseStatus:
    """Extract URL, keys and service health.

    Supabase CLI JSON differs by version: keys may be flat (`API_URL`) or
    nested (`api.url`); the services section may be absent.
    """
    url = _lookup(data, "API_URL", "api_url")
    api_section = _lookup(data, "api")
    if not url and isinstance(api_section, dict):
        url = _lookup(api_section, "url")

    service_key = _lookup(data, "SERVICE_ROLE_KEY", "service_role_key")
    anon_key = _lookup(data, "ANON_KEY", "anon_key")

    services_ok = True
    services = _lookup(data, "services")
    if isinstance(services, dict):
        for name in REQUIRED_SERVICES:
            section = _lookup(services, name)
            # Unknown shapes do not fail the check; only an explicit non-running status does.
            if isinstance(section, dict) and str(_lookup(section, "status") or "").lower() != "running":
                services_ok = False

    return SupabaseStatus(
        api_url=str(url) if url else None,
        service_role_key=str(service_key) if service_key else None,
        anon_key=str(anon_key) if anon_key else None,
        services_ok=services_ok,
    )


def _update_env(env_path: Path, values: dict[str, str]) -> None:
    if not env_path.exists():
        raise SystemExit(f"{env_path} does not exist.")
    lines = env_path.read_text().splitlines()
    for key, value in values.items():
        prefix = f"{key}="
        for idx, line in enumerate(lines):
            if line.startswith(prefix):
                lines[idx] = f"{prefix}{value}"
                break
        else:
            lines.append(f"{prefix}{value}")
    shutil.copy2(env_path, env_path.with_suffix(".bak"))
    env_path.write_text("\n".join(lines) + "\n")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    status = _extract_status(_load_supabase_status())

    if not status.service_role_key or status.service_role_key.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit("Supabase Service Role key is missing or a dummy placeholder.")
    if not status.api_url:
        raise SystemExit("Supabase API URL not found in status output.")
    if not status.services_ok:
        raise SystemExit("Supabase services not healthy (rest/auth not running).")

    values = {
        "SUPABASE_URL": status.api_url,
        "SUPABASE_SERVICE_ROLE_KEY": status.service_role_key,
    }
    if status.anon_key:
        values["SUPABASE_ANON_KEY"] = status.anon_key
    _update_env(ENV_PATH, values)
    # Avoid printing secrets
    logger.info("Synced %s in %s (backup saved to %s)", ", ".join(values), ENV_PATH, BACKUP_PATH)


if __name__ == "__main__":
    main()
